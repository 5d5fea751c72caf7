"""
Fallback extraction through the yt-dlp command-line tool.

Used when the primary extractor cannot fetch or open a stream, or when
the stream breaks mid-transfer. yt-dlp downloads and converts the audio
to MP3 itself.

The tool's output is turned into ToolEvent objects by pure parser
functions (parse_stdout_line / parse_stderr_line), independent of the
process handling in FallbackExtractor.download().
"""

import os
import re
import signal
import subprocess
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Sequence

from spot_mp3.core.exceptions import DownloadTimeoutError, SubprocessError
from spot_mp3.core.logger import get_logger
from spot_mp3.utils.http import USER_AGENT, YOUTUBE_REFERER


logger = get_logger(__name__)


COMMON_YTDLP_PATHS = (
    "/opt/homebrew/bin/yt-dlp",
    "/usr/local/bin/yt-dlp",
    "/usr/bin/yt-dlp",
)
DEFAULT_YTDLP_COMMAND = "yt-dlp"

PROGRESS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)%")
ERROR_MARKERS = ("error", "failed")

AUDIO_QUALITY = "192K"


class ToolEventKind(str, Enum):
    PROGRESS = "progress"
    LINE = "line"
    ERROR = "error"
    EXIT = "exit"


@dataclass(frozen=True)
class ToolEvent:
    """
    One event from the yt-dlp process.

    Attributes:
        kind: progress / line / error / exit.
        text: The raw output line (empty for exit).
        value: Percent for progress events, exit code for exit events.
    """
    kind: ToolEventKind
    text: str = ""
    value: float | None = None


def parse_stdout_line(line: str) -> ToolEvent:
    """Turn a stdout line into a progress event if it carries a percentage."""
    text = line.rstrip("\r\n")
    match = PROGRESS_PATTERN.search(text)
    if match:
        return ToolEvent(ToolEventKind.PROGRESS, text, float(match.group(1)))
    return ToolEvent(ToolEventKind.LINE, text)


def parse_stderr_line(line: str) -> ToolEvent:
    """Flag stderr lines containing "error" or "failed" (any case)."""
    text = line.rstrip("\r\n")
    lowered = text.lower()
    if any(marker in lowered for marker in ERROR_MARKERS):
        return ToolEvent(ToolEventKind.ERROR, text)
    return ToolEvent(ToolEventKind.LINE, text)


@dataclass
class ToolRunSummary:
    """Outcome accumulated from a stream of ToolEvents."""
    exit_code: int | None = None
    error_lines: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.error_lines


def summarize_events(events: Iterable[ToolEvent]) -> ToolRunSummary:
    """Success requires an exit event with code 0 and no error event."""
    summary = ToolRunSummary()
    for event in events:
        if event.kind is ToolEventKind.ERROR:
            summary.error_lines.append(event.text)
        elif event.kind is ToolEventKind.EXIT and event.value is not None:
            summary.exit_code = int(event.value)
    return summary


def resolve_ytdlp_executable(candidates: Sequence[str] = COMMON_YTDLP_PATHS) -> str:
    """Return the first existing install location, else rely on PATH."""
    for candidate in candidates:
        if Path(candidate).exists():
            return candidate
    return DEFAULT_YTDLP_COMMAND


def output_template(output_path: Path) -> str:
    """'/music/Song.mp3' -> '/music/Song.%(ext)s' (yt-dlp picks the extension)."""
    return str(output_path.with_suffix("")) + ".%(ext)s"


def build_arguments(media_url: str, output_path: Path) -> list[str]:
    return [
        "--extract-audio",
        "--audio-format", "mp3",
        "--audio-quality", AUDIO_QUALITY,
        "--output", output_template(output_path),
        "--no-playlist",
        "--newline",
        "--user-agent", USER_AGENT,
        "--referer", YOUTUBE_REFERER,
        media_url,
    ]


ProgressCallback = Callable[[float], None]


class FallbackExtractor:
    """
    Download a video's audio as MP3 with the yt-dlp executable.

    Attributes:
        executable: yt-dlp command or path.
        timeout: Seconds before the process is killed.
    """

    def __init__(self, executable: str | None = None, timeout: float = 600.0) -> None:
        self.executable = executable or resolve_ytdlp_executable()
        self.timeout = timeout

    def _spawn(self, args: list[str]) -> subprocess.Popen:
        # own process group so a timeout can kill helpers that inherit the pipes
        return subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
            start_new_session=True,
        )

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        if not hasattr(os, "killpg"):
            process.kill()
            return
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug(f"yt-dlp process group {process.pid} already exited")

    def download(
        self,
        media_url: str,
        output_path: Path,
        on_progress: ProgressCallback | None = None
    ) -> Path:
        """
        Run yt-dlp and wait for it to finish.

        Args:
            media_url: YouTube watch URL.
            output_path: Final .mp3 path.
            on_progress: Called with the percent of every progress line.

        Returns:
            output_path on success.

        Raises:
            SubprocessError: If the tool cannot be spawned, exits nonzero,
                             or printed an error line on stderr.
            DownloadTimeoutError: If it runs longer than the timeout.
        """
        args = [self.executable, *build_arguments(media_url, output_path)]
        logger.debug(f"Running fallback: {' '.join(args)}")

        try:
            process = self._spawn(args)
        except OSError as e:
            raise SubprocessError(
                f"Error running yt-dlp: {e}",
                details={"executable": self.executable}
            ) from e

        events: list[ToolEvent] = []
        stderr_events: list[ToolEvent] = []

        def read_stderr() -> None:
            for line in process.stderr:
                event = parse_stderr_line(line)
                stderr_events.append(event)
                if event.kind is ToolEventKind.ERROR:
                    logger.debug(f"yt-dlp stderr: {event.text}")

        timed_out = threading.Event()

        def kill_on_timeout() -> None:
            timed_out.set()
            self._kill(process)

        stderr_thread = threading.Thread(target=read_stderr, daemon=True)
        timer = threading.Timer(self.timeout, kill_on_timeout)
        stderr_thread.start()
        timer.start()

        try:
            for line in process.stdout:
                event = parse_stdout_line(line)
                events.append(event)
                if event.kind is ToolEventKind.PROGRESS and on_progress is not None:
                    on_progress(event.value)
            exit_code = process.wait()
        finally:
            timer.cancel()
            if process.poll() is None:
                self._kill(process)
                process.wait()
            stderr_thread.join(timeout=5)
            process.stdout.close()
            process.stderr.close()

        if timed_out.is_set():
            if output_path.exists():
                output_path.unlink()
            raise DownloadTimeoutError(
                f"yt-dlp timed out after {self.timeout:.0f} seconds",
                details={"url": media_url}
            )

        events.extend(stderr_events)
        events.append(ToolEvent(ToolEventKind.EXIT, value=exit_code))
        summary = summarize_events(events)

        if not summary.succeeded:
            reason = summary.error_lines[-1] if summary.error_lines else f"exit code {exit_code}"
            raise SubprocessError(
                f"yt-dlp failed with code {exit_code}: {reason}",
                details={"url": media_url, "stderr": summary.error_lines},
                exit_code=exit_code
            )

        return output_path
