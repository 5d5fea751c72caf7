"""
Data models for YouTube search results and audio streams.

    MediaCandidate     - one search result
    AudioEncoding      - the audio-only format picked from yt-dlp's list
    AudioStreamHandle  - an open HTTP byte stream for that format
"""

from dataclasses import dataclass
from typing import Any, Iterator

import requests

from spot_mp3.core.exceptions import StreamInterruptedError


WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class MediaCandidate:
    """
    Immutable representation of a YouTube search result.

    Attributes:
        video_id: YouTube video ID (11-character string).
        title: Video title as it appears on YouTube.
        channel: Uploading channel / artist name.
        duration: Duration label as returned by the search ("3:33"), or "N/A".
        thumbnail: Thumbnail URL, or None.
        url: Canonical watch URL.

    Class Methods:
        from_ytmusic_result: Create from a ytmusicapi video search result.
    """
    video_id: str
    title: str
    channel: str
    duration: str
    thumbnail: str | None
    url: str

    @classmethod
    def from_ytmusic_result(cls, result: dict[str, Any]) -> "MediaCandidate":
        """
        Map a ytmusicapi search result.

        ytmusicapi puts the channel in the first "artists" entry for video
        results and lists thumbnails smallest first.
        """
        video_id = result.get("videoId", "")

        artists = result.get("artists") or []
        channel = ""
        if artists and isinstance(artists[0], dict):
            channel = artists[0].get("name") or ""

        thumbnails = result.get("thumbnails") or []
        thumbnail = thumbnails[0].get("url") if thumbnails and isinstance(thumbnails[0], dict) else None

        return cls(
            video_id=video_id,
            title=result.get("title") or "",
            channel=channel or "Unknown",
            duration=result.get("duration") or "N/A",
            thumbnail=thumbnail,
            url=WATCH_URL.format(video_id=video_id),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.video_id,
            "title": self.title,
            "channel": self.channel,
            "duration": self.duration,
            "thumbnail": self.thumbnail,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MediaCandidate":
        video_id = data.get("id") or data.get("video_id", "")
        return cls(
            video_id=video_id,
            title=data.get("title", ""),
            channel=data.get("channel", "Unknown"),
            duration=data.get("duration", "N/A"),
            thumbnail=data.get("thumbnail"),
            url=data.get("url") or WATCH_URL.format(video_id=video_id),
        )


@dataclass(frozen=True)
class AudioEncoding:
    """
    Audio-only format selected from yt-dlp's format list.

    Attributes:
        format_id: yt-dlp format id (YouTube itag).
        bitrate: Declared audio bitrate in kbps (0 if unknown).
        content_length: Size in bytes if known.
        container: File extension / container ("webm", "m4a").
        url: Direct media URL.
        http_headers: Headers yt-dlp says the URL must be requested with.
    """
    format_id: str
    bitrate: float
    content_length: int | None
    container: str
    url: str
    http_headers: dict[str, str]

    @classmethod
    def from_format(cls, fmt: dict[str, Any]) -> "AudioEncoding":
        size = fmt.get("filesize") or fmt.get("filesize_approx")
        return cls(
            format_id=str(fmt.get("format_id", "")),
            bitrate=float(fmt.get("abr") or 0),
            content_length=int(size) if size else None,
            container=fmt.get("ext") or "",
            url=fmt["url"],
            http_headers=dict(fmt.get("http_headers") or {}),
        )


class AudioStreamHandle:
    """
    An open byte stream for one audio encoding.

    Opened by the stream extractor, consumed once by the transcoder and
    then closed. Network faults while reading surface as
    StreamInterruptedError.
    """

    def __init__(self, encoding: AudioEncoding, response: requests.Response) -> None:
        self.encoding = encoding
        self._response = response
        self.downloaded = 0

    @property
    def total_bytes(self) -> int:
        if self.encoding.content_length:
            return self.encoding.content_length
        header = self._response.headers.get("Content-Length")
        return int(header) if header and header.isdigit() else 0

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        try:
            for chunk in self._response.iter_content(chunk_size=chunk_size):
                if not chunk:
                    continue
                self.downloaded += len(chunk)
                yield chunk
        except requests.RequestException as e:
            raise StreamInterruptedError(
                f"Audio stream interrupted: {e}",
                details={"format_id": self.encoding.format_id, "downloaded": self.downloaded}
            ) from e

    def close(self) -> None:
        self._response.close()
