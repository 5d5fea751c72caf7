"""
Progress events and progress bars for spot-mp3.

Two kinds of progress flow out of the download core:

    TransferProgress   - one track's byte transfer (0-100 percent)
    PlaylistProgress   - which playlist entry is being processed

The core only calls plain callbacks with these events. Rendering is done
by the CLI with the Rich-based bars below.

Usage:
    with PlaylistProgressBar(total=len(tracks)) as bar:
        service.download_playlist(resolution, dest, on_playlist_progress=bar.advance)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from rich import get_console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(30,215,96)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(30,215,96)",
    "progress.percentage": "white",
})


@dataclass(frozen=True)
class TransferProgress:
    """
    Byte-level progress of a single track download.

    Attributes:
        progress_id: Identifier of the transfer (video id or playlist slot).
        progress: Percent in [0, 100]. Stays at or below 99 until the
                  terminal 100 event.
        downloaded: Humanized bytes received so far (or a status label).
        total: Humanized total size (or "Unknown").
    """
    progress_id: str
    progress: int
    downloaded: str
    total: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "videoId": self.progress_id,
            "progress": self.progress,
            "downloaded": self.downloaded,
            "total": self.total,
        }


@dataclass(frozen=True)
class PlaylistProgress:
    """Position of the batch orchestrator inside a playlist."""
    current: int
    total: int
    track_name: str
    artist: str
    percent: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current,
            "total": self.total,
            "trackName": self.track_name,
            "artist": self.artist,
            "percent": self.percent,
        }


TransferCallback = Callable[[TransferProgress], None]
PlaylistCallback = Callable[[PlaylistProgress], None]


class MonotonicProgress:
    """
    Callback wrapper that keeps one track's progress non-decreasing.

    A track may go through the primary extractor and then the fallback,
    each starting from 0 percent. Values below the last emitted one are
    dropped; equal ones are forwarded so byte labels keep updating. Values
    are clamped to [0, 99] until finish() sends 100.
    """

    def __init__(self, progress_id: str, callback: TransferCallback | None) -> None:
        self.progress_id = progress_id
        self._callback = callback
        self._last = -1

    @property
    def last(self) -> int:
        return max(self._last, 0)

    def report(self, percent: float, downloaded: str, total: str) -> None:
        value = min(max(int(round(percent)), 0), 99)
        if value < self._last:
            return
        self._last = value
        self._emit(value, downloaded, total)

    def finish(self, downloaded: str, total: str) -> None:
        self._last = 100
        self._emit(100, downloaded, total)

    def _emit(self, value: int, downloaded: str, total: str) -> None:
        if self._callback is not None:
            self._callback(TransferProgress(self.progress_id, value, downloaded, total))


class BaseProgressBar(ABC):
    """
    Common Rich progress bar with context manager support.

    Subclasses provide the status text shown next to the bar.
    """

    def __init__(self, total: int, description: str) -> None:
        self.total = total
        self.description = description
        self.completed = 0

        self.console = get_console()
        self.console.push_theme(PROGRESS_THEME)

        self.progress = Progress(
            TextColumn("[white]{task.description:<12}"),
            TextColumn("{task.fields[status]}"),
            BarColumn(bar_width=40),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )

        self.task_id: Optional[TaskID] = None
        self._started = False

    def __enter__(self) -> "BaseProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        if not self._started:
            self.progress.start()
            self.task_id = self.progress.add_task(
                description=self.description,
                total=self.total,
                status=self._get_status_text(),
            )
            self._started = True

    def stop(self) -> None:
        if self._started:
            self.progress.stop()
            self._started = False

    def _refresh(self) -> None:
        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self._get_status_text(),
            )

    @abstractmethod
    def _get_status_text(self) -> str:
        pass


class TransferProgressBar(BaseProgressBar):
    """
    Percent bar for a single track download.

    Example:
        Downloading   3.21 MB / 4.02 MB   ━━━━━━━━━━━━━━━━━━━━━━  79%
    """

    def __init__(self, description: str = "Downloading") -> None:
        self.downloaded = ""
        self.size = ""
        super().__init__(total=100, description=description)

    def _get_status_text(self) -> str:
        if not self.downloaded:
            return ""
        return f"{self.downloaded} / {self.size}"

    def update(self, event: TransferProgress) -> None:
        self.completed = event.progress
        self.downloaded = event.downloaded
        self.size = event.total
        self._refresh()


class PlaylistProgressBar(BaseProgressBar):
    """
    Track-counter bar for playlist downloads.

    Example:
        Playlist      [3/12] Daft Punk - One More Time   ━━━━━━━  25%
    """

    def __init__(self, total: int, description: str = "Playlist") -> None:
        self.current_label = ""
        super().__init__(total=total, description=description)

    def _get_status_text(self) -> str:
        return self.current_label

    def advance(self, event: PlaylistProgress) -> None:
        self.completed = event.current - 1
        self.current_label = f"[{event.current}/{event.total}] {event.artist} - {event.track_name}"
        self._refresh()

    def finish(self) -> None:
        self.completed = self.total
        self.current_label = "[green]done[/green]"
        self._refresh()
