"""
Transcoding bridge: pipe a raw audio stream through ffmpeg into an MP3.

The command is built with ffmpeg-python and run asynchronously with a
stdin pipe:

    ffmpeg -hide_banner -loglevel error -i pipe:0
           -acodec libmp3lame -b:a 192k -ar 44100 -f mp3 -y <output>

Chunks from the AudioStreamHandle are written to ffmpeg's stdin while
progress is reported as min(downloaded / total * 100, 99).
"""

import subprocess
import threading
import time
from collections import deque
from pathlib import Path
from typing import Callable

import ffmpeg

from spot_mp3.core.exceptions import DownloadTimeoutError, SubprocessError
from spot_mp3.core.logger import get_logger
from spot_mp3.utils import format_bytes
from spot_mp3.youtube.models import AudioStreamHandle


logger = get_logger(__name__)


# (percent, downloaded label, total label)
ProgressCallback = Callable[[float, str, str], None]

STDERR_TAIL_LINES = 20


def transfer_percent(downloaded: int, total: int) -> float:
    """Percent of bytes received, capped at 99 until ffmpeg finishes."""
    if total <= 0:
        return 0.0
    return min(downloaded / total * 100, 99.0)


class TranscoderBridge:
    """
    Run ffmpeg on a piped audio stream.

    Attributes:
        ffmpeg_path: ffmpeg executable.
        bitrate: Constant output bitrate ("192k").
        sample_rate: Output sample rate in Hz.
        timeout: Seconds the whole transfer + encode may take.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        bitrate: str = "192k",
        sample_rate: int = 44100,
        timeout: float = 600.0
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.bitrate = bitrate
        self.sample_rate = sample_rate
        self.timeout = timeout

    def build_command(self, output_path: Path):
        """Return the ffmpeg-python stream graph for output_path."""
        return (
            ffmpeg
            .input("pipe:0")
            .output(
                str(output_path),
                acodec="libmp3lame",
                audio_bitrate=self.bitrate,
                ar=self.sample_rate,
                f="mp3",
            )
            .global_args("-hide_banner", "-loglevel", "error")
            .overwrite_output()
        )

    def _spawn(self, output_path: Path) -> subprocess.Popen:
        return self.build_command(output_path).run_async(
            cmd=self.ffmpeg_path,
            pipe_stdin=True,
            pipe_stderr=True,
        )

    def transcode(
        self,
        stream: AudioStreamHandle,
        output_path: Path,
        on_progress: ProgressCallback | None = None
    ) -> Path:
        """
        Feed the stream into ffmpeg and wait for the MP3 to be written.

        Args:
            stream: Open audio stream (closed when this returns or raises).
            output_path: Destination .mp3 file (overwritten).
            on_progress: Called after every chunk with percent and
                         humanized byte labels.

        Returns:
            output_path on success.

        Raises:
            StreamInterruptedError: If the source stream breaks. The
                                    pipeline answers with the fallback.
            SubprocessError: If ffmpeg cannot start or exits nonzero.
            DownloadTimeoutError: If the timeout is exceeded.

        A partially written output file is removed on any failure.
        """
        deadline = time.monotonic() + self.timeout

        try:
            process = self._spawn(output_path)
        except OSError as e:
            stream.close()
            raise SubprocessError(
                f"Conversion error: could not start ffmpeg ({e})",
                details={"ffmpeg_path": self.ffmpeg_path}
            ) from e

        stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

        def drain_stderr() -> None:
            for raw_line in process.stderr:
                stderr_tail.append(raw_line.decode("utf-8", errors="replace").rstrip())

        stderr_thread = threading.Thread(target=drain_stderr, daemon=True)
        stderr_thread.start()

        total = stream.total_bytes
        total_label = format_bytes(total)

        try:
            try:
                for chunk in stream.iter_chunks():
                    if time.monotonic() > deadline:
                        raise DownloadTimeoutError(
                            f"Download timed out after {self.timeout:.0f} seconds",
                            details={"output_path": str(output_path)}
                        )
                    process.stdin.write(chunk)
                    if on_progress is not None:
                        on_progress(
                            transfer_percent(stream.downloaded, total),
                            format_bytes(stream.downloaded),
                            total_label,
                        )
                process.stdin.close()
            except BrokenPipeError:
                # ffmpeg exited early; its exit code tells why
                logger.debug("ffmpeg closed its input early")

            remaining = max(deadline - time.monotonic(), 0)
            try:
                exit_code = process.wait(timeout=remaining)
            except subprocess.TimeoutExpired as e:
                raise DownloadTimeoutError(
                    f"Conversion timed out after {self.timeout:.0f} seconds",
                    details={"output_path": str(output_path)}
                ) from e

        except BaseException:
            self._abort(process, output_path)
            raise
        finally:
            stream.close()
            stderr_thread.join(timeout=5)

        if exit_code != 0:
            self._remove_partial(output_path)
            raise SubprocessError(
                f"Conversion error (code {exit_code})",
                details={"stderr": list(stderr_tail)},
                exit_code=exit_code
            )

        return output_path

    def _abort(self, process: subprocess.Popen, output_path: Path) -> None:
        if process.poll() is None:
            process.kill()
            process.wait()
        self._remove_partial(output_path)

    @staticmethod
    def _remove_partial(output_path: Path) -> None:
        if output_path.exists():
            output_path.unlink()
            logger.debug(f"Removed partial output {output_path}")
