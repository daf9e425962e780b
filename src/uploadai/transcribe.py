import os
import time
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx

from uploadai import errors, runtime, store as st


@runtime_checkable
class Transcriber(Protocol):
    def transcribe(self, audio_path: Path, language: str, prompt: str) -> str: ...


class WhisperAPITranscriber:
    """Speech-to-text over an OpenAI-compatible `/audio/transcriptions` endpoint."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None,
                 model: str | None = None, client: httpx.Client | None = None):
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        self._base_url = (base_url or runtime.WHISPER_URL).rstrip("/")
        self._model = model or runtime.WHISPER_MODEL
        self._client = client or httpx.Client(timeout=600)

    def transcribe(self, audio_path: Path, language: str, prompt: str) -> str:
        try:
            with open(audio_path, "rb") as f:
                resp = self._client.post(
                    f"{self._base_url}/audio/transcriptions",
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    data={
                        "model": self._model,
                        "language": language,
                        "prompt": prompt,
                        "temperature": "0",
                        "response_format": "json",
                    },
                    files={"file": (audio_path.name, f, "audio/mpeg")},
                )
            resp.raise_for_status()
            text = resp.json()["text"]
        except httpx.HTTPStatusError as exc:
            raise errors.TranscriptionProviderError(
                f"Transcription provider returned {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise errors.TranscriptionProviderError(f"Transcription provider unreachable: {exc}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise errors.TranscriptionProviderError("Malformed transcription response") from exc
        if not isinstance(text, str):
            raise errors.TranscriptionProviderError("Malformed transcription response")
        return text


class AssemblyAITranscriber:
    def __init__(self, api_key: str | None = None):
        import assemblyai as aai
        aai.settings.api_key = api_key or os.environ["ASSEMBLYAI_API_KEY"]
        self._aai = aai

    def transcribe(self, audio_path: Path, language: str, prompt: str) -> str:
        # Prompt hints are comma-separated keywords.
        terms = [w.strip() for w in prompt.split(",") if w.strip()]
        config = self._aai.TranscriptionConfig(
            language_code=language,
            word_boost=terms,
            punctuate=True,
            format_text=True,
        )
        try:
            transcript = self._aai.Transcriber().transcribe(str(audio_path), config=config)
        except httpx.HTTPError as exc:
            raise errors.TranscriptionProviderError(f"AssemblyAI unreachable: {exc}") from exc
        except self._aai.types.AssemblyAIError as exc:
            raise errors.TranscriptionProviderError(f"AssemblyAI request failed: {exc}") from exc
        if transcript.status == self._aai.TranscriptStatus.error:
            raise errors.TranscriptionProviderError(f"AssemblyAI transcription failed: {transcript.error}")
        return transcript.text or ""


def make_transcriber(name: str | None = None) -> Transcriber:
    name = name or runtime.TRANSCRIBER
    if name == "assemblyai":
        return AssemblyAITranscriber()
    if name == "whisper":
        return WhisperAPITranscriber()
    raise ValueError(f"Unknown transcriber: {name}")


class TranscriptionService:
    """Transcribes a stored upload once and serves the stored text afterwards."""

    def __init__(self, store: st.RecordStore, transcriber: Transcriber, language: str | None = None):
        self.store = store
        self.transcriber = transcriber
        self.language = language or runtime.LANGUAGE

    def transcribe(self, video_id: str, prompt: str) -> str:
        vid = st.parse_id(video_id)
        record = self.store.get(vid)
        if record.transcription:
            print(f"[{vid}] Transcription cached")
            return record.transcription

        audio_path = Path(record.path)
        if not audio_path.is_file():
            raise errors.NotFoundError(f"Stored file for video {vid} is missing")

        t0 = time.monotonic()
        print(f"[{vid}] Transcribing {audio_path.name}...")
        text = self.transcriber.transcribe(audio_path, self.language, prompt)
        record = self.store.set_transcription(vid, text)
        print(f"[{vid}] Transcribed in {time.monotonic() - t0:.0f}s ({len(record.transcription or '')} chars)")
        return record.transcription
