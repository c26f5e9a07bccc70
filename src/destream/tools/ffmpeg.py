"""
FFmpeg tool wrapper for muxing HLS streams to disk.

A download is a single ffmpeg process started without blocking. Its
``-progress pipe:1`` output is turned into a stream of events:

    MuxProgress, MuxProgress, ..., MuxSuccess | MuxError

Exactly one terminal event ends every stream.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from destream.tools.base import VideoTool
from destream.utils.system import find_tool

if TYPE_CHECKING:
    from destream.models.session import Session
    from destream.models.video import Video
    from destream.operations.download import DownloadSettings

logger = logging.getLogger(__name__)

PROGRESS_ARGS = ["-progress", "pipe:1", "-nostats", "-loglevel", "error"]
TERMINATE_TIMEOUT = 5
STDERR_TAIL_LINES = 50


@dataclass(frozen=True)
class MuxProgress:
    """One ``-progress`` block: position, bitrate and speed as ffmpeg prints them."""

    timemark: str
    bitrate: str = "N/A"
    speed: str = "N/A"


@dataclass(frozen=True)
class MuxSuccess:
    pass


@dataclass(frozen=True)
class MuxError:
    reason: str


MuxEvent = MuxProgress | MuxSuccess | MuxError


@dataclass
class MuxCommand:
    """ffmpeg argument list built from inputs and outputs."""

    inputs: list[list[str]] = field(default_factory=list)
    outputs: list[list[str]] = field(default_factory=list)
    overwrite: bool = False

    def add_input(self, source: str, headers: dict[str, str] | None = None) -> MuxCommand:
        args = []
        if headers:
            joined = "".join(f"{key}: {value}\r\n" for key, value in headers.items())
            args += ["-headers", joined]
        self.inputs.append([*args, "-i", source])
        return self

    def add_output(self, path: str, options: list[str] | None = None) -> MuxCommand:
        self.outputs.append([*(options or []), path])
        return self

    def to_args(self) -> list[str]:
        """Arguments without the executable. ``-n`` unless overwrite is set."""
        args = [*PROGRESS_ARGS, "-y" if self.overwrite else "-n"]
        for item in self.inputs:
            args += item
        for item in self.outputs:
            args += item
        return args


def codec_options(acodec: str, vcodec: str) -> list[str]:
    """Output codec flags; ``none`` drops the stream."""
    options = ["-an"] if acodec == "none" else ["-c:a", acodec]
    options += ["-vn"] if vcodec == "none" else ["-c:v", vcodec]
    return options


def _drain(stream, tail: deque[str]) -> None:
    """Read ``stream`` to EOF keeping only its last lines."""
    try:
        for line in stream:
            tail.append(line)
    except (OSError, ValueError) as e:
        # Pipe closed under us by terminate()
        logger.debug(f"Stopped reading ffmpeg stderr: {e}")


class MuxProcess:
    """A running ffmpeg process and its event stream.

    Created by FFmpegTool.spawn(). A process that failed to start carries
    ``start_error`` and its event stream is a single MuxError.
    """

    def __init__(self, process: subprocess.Popen | None, start_error: str | None = None):
        self.process = process
        self.start_error = start_error

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def events(self) -> Iterator[MuxEvent]:
        """Yield progress events, then exactly one MuxSuccess or MuxError.

        The process is terminated if the consumer stops early.
        """
        if self.process is None:
            yield MuxError(self.start_error or "ffmpeg could not be started")
            return

        # stderr is drained concurrently so a chatty ffmpeg cannot fill the
        # pipe and block before stdout closes
        stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        reader = None
        if self.process.stderr:
            reader = threading.Thread(
                target=_drain, args=(self.process.stderr, stderr_tail), name="ffmpeg-stderr", daemon=True
            )
            reader.start()

        try:
            block: dict[str, str] = {}
            if self.process.stdout:
                for line in self.process.stdout:
                    key, sep, value = line.strip().partition("=")
                    if not sep:
                        continue
                    if key != "progress":
                        block[key] = value
                        continue
                    if "out_time" in block:
                        yield MuxProgress(
                            timemark=block["out_time"],
                            bitrate=block.get("bitrate", "N/A"),
                            speed=block.get("speed", "N/A"),
                        )
                    block = {}

            returncode = self.process.wait()
            if reader is not None:
                reader.join(timeout=TERMINATE_TIMEOUT)
            if returncode == 0:
                yield MuxSuccess()
            else:
                lines = [line for line in (item.strip() for item in stderr_tail) if line]
                yield MuxError(lines[-1] if lines else f"ffmpeg exited with code {returncode}")
        finally:
            self.terminate()

    def terminate(self) -> None:
        """Stop the process if it is still running. Safe to call repeatedly."""
        if not self.running:
            return
        logger.debug("Terminating ffmpeg")
        self.process.terminate()
        try:
            self.process.wait(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()


class FFmpegTool(VideoTool):
    """Wrapper for the ffmpeg executable."""

    @property
    def name(self) -> str:
        return "ffmpeg"

    def get_path(self) -> str:
        """Get path to ffmpeg executable."""
        return find_tool("ffmpeg")

    def build_command(self, video: Video, session: Session, settings: DownloadSettings) -> MuxCommand:
        """Command that saves ``video`` to ``video.out_path``.

        The playback URL (and the captions URL when requested and present)
        are fetched with the session's bearer token.
        """
        headers = {"Authorization": session.authorization_header}
        command = MuxCommand()
        command.add_input(video.playback_url, headers=headers)
        if settings.closed_captions and video.captions_url:
            command.add_input(video.captions_url, headers=headers)
        command.add_output(video.out_path, codec_options(settings.acodec, settings.vcodec))
        return command

    def spawn(self, command: MuxCommand) -> MuxProcess:
        """Start ffmpeg without waiting for it."""
        cmd = [self.get_path(), *command.to_args()]
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            logger.debug(f"Failed to start ffmpeg: {e}")
            return MuxProcess(None, start_error=str(e))
        return MuxProcess(process)
