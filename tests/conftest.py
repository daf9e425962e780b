import pathlib
import shutil
import subprocess

import dotenv
import pytest

from uploadai import errors, store as st

dotenv.load_dotenv(pathlib.Path(__file__).parent.parent / ".env")


class FakeTranscriber:
    def __init__(self, text: str = "hello world", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[tuple] = []

    def transcribe(self, audio_path, language, prompt):
        self.calls.append((audio_path, language, prompt))
        if self.error:
            raise self.error
        return self.text


class FakeCompleter:
    def __init__(self, chunks=("A", "B", "C"), fail_at: int | None = None):
        self.chunks = list(chunks)
        self.fail_at = fail_at
        self.calls: list[tuple] = []
        self.yielded: list[str] = []

    async def stream(self, prompt, temperature):
        self.calls.append((prompt, temperature))
        for i, chunk in enumerate(self.chunks):
            if i == self.fail_at:
                raise errors.CompletionProviderError("provider disconnected")
            self.yielded.append(chunk)
            yield chunk


@pytest.fixture
def store():
    return st.MemoryStore()


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "audio.mp3"
    path.write_bytes(b"ID3\x03\x00\x00\x00fake mp3 payload")
    return path


@pytest.fixture
def record(store, audio_file):
    return store.create(str(audio_file), name=audio_file.name)


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def completer():
    return FakeCompleter()


def _has_ffmpeg() -> bool:
    if shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None:
        return False
    encoders = subprocess.run(["ffmpeg", "-hide_banner", "-encoders"], capture_output=True, text=True)
    return "libmp3lame" in encoders.stdout


@pytest.fixture
def sample_video(tmp_path):
    if not _has_ffmpeg():
        pytest.skip("ffmpeg not found in PATH")
    path = tmp_path / "sample.mp4"
    subprocess.run(
        ["ffmpeg", "-y", "-f", "lavfi", "-i", "color=c=black:s=160x120:d=3",
         "-f", "lavfi", "-i", "sine=frequency=440:duration=3",
         "-shortest", "-c:v", "mpeg4", "-c:a", "aac", str(path)],
        capture_output=True, check=True,
    )
    return path


@pytest.fixture
def silent_video(tmp_path):
    if not _has_ffmpeg():
        pytest.skip("ffmpeg not found in PATH")
    path = tmp_path / "silent.mp4"
    subprocess.run(
        ["ffmpeg", "-y", "-f", "lavfi", "-i", "color=c=black:s=160x120:d=2",
         "-c:v", "mpeg4", str(path)],
        capture_output=True, check=True,
    )
    return path
