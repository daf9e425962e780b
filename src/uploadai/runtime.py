import os
import shutil
import sys
from pathlib import Path

import dotenv

dotenv.load_dotenv()

DATA_DIR = Path(os.environ.get("UPLOADAI_DATA_DIR", Path.home() / ".cache" / "uploadai"))
LANGUAGE = os.environ.get("UPLOADAI_LANGUAGE", "pt")
TRANSCRIBER = os.environ.get("UPLOADAI_TRANSCRIBER", "whisper")
WHISPER_URL = os.environ.get("UPLOADAI_WHISPER_URL", "https://api.openai.com/v1")
WHISPER_MODEL = os.environ.get("UPLOADAI_WHISPER_MODEL", "whisper-1")
CLAUDE_MODEL = os.environ.get("UPLOADAI_CLAUDE_MODEL", "claude-sonnet-4-5-20250929")
API_URL = os.environ.get("UPLOADAI_API_URL", "http://localhost:3333")
FFMPEG = os.environ.get("UPLOADAI_FFMPEG", "ffmpeg")
FFPROBE = os.environ.get("UPLOADAI_FFPROBE", "ffprobe")

MAX_UPLOAD_BYTES = 25 * 1024 * 1024


def data_dir() -> Path:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR


def records_dir() -> Path:
    d = data_dir() / "records"
    d.mkdir(parents=True, exist_ok=True)
    return d


def uploads_dir() -> Path:
    d = data_dir() / "uploads"
    d.mkdir(parents=True, exist_ok=True)
    return d


def _check_binary(name: str) -> bool:
    return shutil.which(name) is not None


def _check_key(name: str) -> bool:
    return bool(os.environ.get(name))


def transcriber_key() -> str:
    return "ASSEMBLYAI_API_KEY" if TRANSCRIBER == "assemblyai" else "OPENAI_API_KEY"


def check(
    needs_ffmpeg: bool = False, needs_transcriber: bool = False, needs_anthropic: bool = False,
) -> list[str]:
    errors = []

    if needs_ffmpeg:
        for binary in (FFMPEG, FFPROBE):
            if not _check_binary(binary):
                errors.append(f"{binary} not found in PATH — install from https://ffmpeg.org/")

    if needs_transcriber:
        if TRANSCRIBER not in ("whisper", "assemblyai"):
            errors.append(f"UPLOADAI_TRANSCRIBER must be 'whisper' or 'assemblyai', got '{TRANSCRIBER}'")
        elif not _check_key(transcriber_key()):
            errors.append(f"{transcriber_key()} not set — add it to .env or export it")

    if needs_anthropic and not _check_key("ANTHROPIC_API_KEY"):
        errors.append("ANTHROPIC_API_KEY not set — add it to .env or export it")

    return errors


def require(
    needs_ffmpeg: bool = False, needs_transcriber: bool = False, needs_anthropic: bool = False,
):
    errors = check(
        needs_ffmpeg=needs_ffmpeg, needs_transcriber=needs_transcriber,
        needs_anthropic=needs_anthropic,
    )
    if errors:
        print("Missing requirements:", file=sys.stderr)
        for e in errors:
            print(f"  - {e}", file=sys.stderr)
        sys.exit(1)
