"""
FFmpeg-based MP3 transcoder.

ffmpeg works on files, so every transcode goes through a pair of temporary
files named after a UUID7. Both files are removed whatever the outcome.
"""

import asyncio
import json
import logging
import re
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import uuid_utils as uuid

from feed_importer.errors import TranscodeError


logger = logging.getLogger("pipeline")

STDERR_TAIL = 2000


@dataclass(frozen=True)
class AudioInfo:
    """Stream properties of an audio file."""

    codec: Optional[str]
    channels: Optional[int]
    sample_rate: Optional[int]
    bit_rate: Optional[int]


def probe_audio(path: Union[str, Path], ffprobe_bin: str = "ffprobe") -> AudioInfo:
    """
    Read the first audio stream's properties with ffprobe.

    Args:
        path: Audio file to inspect
        ffprobe_bin: ffprobe executable

    Returns:
        AudioInfo for the first audio stream.

    Raises:
        TranscodeError: If ffprobe fails or finds no audio stream.
    """
    cmd = [
        ffprobe_bin,
        "-v",
        "error",
        "-select_streams",
        "a:0",
        "-show_entries",
        "stream=codec_name,channels,sample_rate,bit_rate",
        "-of",
        "json",
        str(path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30, check=True)
        streams = json.loads(result.stdout).get("streams", [])
    except (
        subprocess.CalledProcessError,
        subprocess.TimeoutExpired,
        json.JSONDecodeError,
        FileNotFoundError,
    ) as e:
        raise TranscodeError(f"Could not probe {path}: {e}") from e

    if not streams:
        raise TranscodeError(f"No audio stream in {path}")

    stream = streams[0]

    def as_int(value) -> Optional[int]:
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None

    return AudioInfo(
        codec=stream.get("codec_name"),
        channels=as_int(stream.get("channels")),
        sample_rate=as_int(stream.get("sample_rate")),
        bit_rate=as_int(stream.get("bit_rate")),
    )


class Transcoder:
    """Re-encode arbitrary audio to mono MP3 at a fixed bitrate and sample rate."""

    def __init__(
        self,
        tmp_dir: Optional[str] = None,
        ffmpeg_bin: str = "ffmpeg",
        bitrate: str = "64k",
        channels: int = 1,
        sample_rate: int = 44100,
    ):
        """Initialize the transcoder.

        Args:
            tmp_dir: Directory for the temporary input/output files (default: system temp dir)
            ffmpeg_bin: ffmpeg executable
            bitrate: Target audio bitrate
            channels: Target channel count
            sample_rate: Target sample rate in Hz
        """
        self.tmp_dir = Path(tmp_dir or tempfile.gettempdir())
        self.ffmpeg_bin = ffmpeg_bin
        self.bitrate = bitrate
        self.channels = channels
        self.sample_rate = sample_rate

    def _temp_path(self, extension: str) -> Path:
        return self.tmp_dir / f"{uuid.uuid7()}.{extension}"

    @staticmethod
    def _safe_extension(extension: str) -> str:
        # URL-derived hints can contain path fragments
        cleaned = re.sub(r"[^A-Za-z0-9]", "", extension or "")[:10]
        return cleaned.lower() or "bin"

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        """ffmpeg invocation for one input/output pair."""
        return [
            self.ffmpeg_bin,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i",
            str(input_path),
            "-vn",  # Audio only (drops embedded cover art)
            "-acodec",
            "libmp3lame",
            "-b:a",
            self.bitrate,
            "-ac",
            str(self.channels),
            "-ar",
            str(self.sample_rate),
            "-f",
            "mp3",
            str(output_path),
        ]

    async def transcode_file(self, input_path: Path, output_path: Path) -> None:
        """
        Run ffmpeg and wait for it to exit.

        Raises:
            TranscodeError: If ffmpeg cannot be started or exits with an error.
        """
        cmd = self.build_command(input_path, output_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TranscodeError(f"Could not start {self.ffmpeg_bin}: {e}") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            message = stderr.decode(errors="replace")[-STDERR_TAIL:].strip()
            raise TranscodeError(
                f"ffmpeg exited with code {process.returncode}: {message}"
            )

    async def transcode(self, data: bytes, input_extension: str) -> bytes:
        """
        Transcode an in-memory audio buffer to MP3.

        Args:
            data: Source audio in any format ffmpeg can read
            input_extension: Extension hint for the temporary input file

        Returns:
            The encoded MP3 bytes.

        Raises:
            TranscodeError: If encoding fails.
        """
        input_path = self._temp_path(self._safe_extension(input_extension))
        output_path = self._temp_path("mp3")
        try:
            input_path.write_bytes(data)
            await self.transcode_file(input_path, output_path)
            try:
                output = output_path.read_bytes()
            except FileNotFoundError as e:
                raise TranscodeError("ffmpeg reported success but wrote no output") from e
            logger.debug(
                f"Transcoded {len(data):,} bytes of {input_extension} to {len(output):,} bytes of mp3"
            )
            return output
        finally:
            input_path.unlink(missing_ok=True)
            output_path.unlink(missing_ok=True)
