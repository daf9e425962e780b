import asyncio
import contextlib
import json
import shutil
import tempfile
from pathlib import Path
from typing import AsyncIterator, Callable

from uploadai import errors, runtime

AUDIO_BITRATE = "20k"
AUDIO_CODEC = "libmp3lame"

ProgressCallback = Callable[[float], None]


def _report(on_progress: ProgressCallback | None, fraction: float):
    # Consumer errors are printed, never raised.
    if on_progress is None:
        return
    try:
        on_progress(fraction)
    except Exception as exc:
        print(f"\n  Progress callback failed: {type(exc).__name__}: {exc}")


class Transcoder:
    """Converts a video file into a compact mp3 for speech-to-text.

    One ffmpeg run at a time per instance: `convert` acquires the engine lock
    and a private working directory, and releases both when it returns.
    """

    def __init__(self, ffmpeg: str | None = None, ffprobe: str | None = None,
                 bitrate: str = AUDIO_BITRATE, codec: str = AUDIO_CODEC):
        self.ffmpeg = ffmpeg or runtime.FFMPEG
        self.ffprobe = ffprobe or runtime.FFPROBE
        self.bitrate = bitrate
        self.codec = codec
        self._lock = asyncio.Lock()

    @contextlib.asynccontextmanager
    async def _engine(self) -> AsyncIterator[Path]:
        async with self._lock:
            with tempfile.TemporaryDirectory(prefix="uploadai_tc_") as tmp:
                yield Path(tmp)

    async def _run(self, *cmd: str) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise errors.TranscodeError(f"{cmd[0]} not found in PATH")

    async def probe(self, video_path: Path) -> tuple[bool, float]:
        """Returns (has_audio, duration_seconds)."""
        proc = await self._run(
            self.ffprobe, "-v", "error",
            "-show_entries", "format=duration:stream=codec_type",
            "-of", "json", str(video_path),
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise errors.TranscodeError(f"Cannot read {video_path.name}: {stderr.decode(errors='replace').strip()}")
        try:
            info = json.loads(stdout or b"{}")
        except json.JSONDecodeError as exc:
            raise errors.TranscodeError(f"Unreadable probe output for {video_path.name}") from exc
        has_audio = any(s.get("codec_type") == "audio" for s in info.get("streams", []))
        try:
            duration = float(info.get("format", {}).get("duration", 0.0))
        except (TypeError, ValueError):
            duration = 0.0
        return has_audio, duration

    async def convert(self, video_path: Path, output_path: Path,
                      on_progress: ProgressCallback | None = None) -> Path:
        if not video_path.is_file():
            raise errors.TranscodeError(f"{video_path} is not a file")

        has_audio, duration = await self.probe(video_path)
        if not has_audio:
            raise errors.TranscodeError(f"{video_path.name} has no audio stream")

        print(f"Convert started: {video_path.name}")
        async with self._engine() as workdir:
            out = workdir / "output.mp3"
            proc = await self._run(
                self.ffmpeg, "-nostdin", "-y",
                "-i", str(video_path),
                "-map", "0:a",
                "-b:a", self.bitrate,
                "-acodec", self.codec,
                "-progress", "pipe:1", "-nostats",
                str(out),
            )
            stderr_task = asyncio.create_task(proc.stderr.read())
            try:
                async for line in proc.stdout:
                    key, _, value = line.decode(errors="replace").strip().partition("=")
                    if key not in ("out_time_us", "out_time_ms") or duration <= 0:
                        continue
                    try:
                        done = int(value) / 1_000_000
                    except ValueError:
                        continue
                    fraction = min(max(done / duration, 0.0), 1.0)
                    print(f"\r  Converting: {fraction * 100:.0f}%", end="", flush=True)
                    _report(on_progress, fraction)
                stderr = await stderr_task
                await proc.wait()
            finally:
                if proc.returncode is None:
                    proc.kill()
                    await proc.wait()
                if not stderr_task.done():
                    stderr_task.cancel()
            print()

            if proc.returncode != 0 or not out.exists() or out.stat().st_size == 0:
                tail = stderr.decode(errors="replace").strip().splitlines()[-3:]
                raise errors.TranscodeError(f"ffmpeg failed for {video_path.name}: {' '.join(tail)}")

            output_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(out), str(output_path))

        _report(on_progress, 1.0)
        print(f"Convert finished: {output_path}")
        return output_path
