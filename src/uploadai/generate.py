import os
from typing import AsyncIterator, Protocol, runtime_checkable

import anthropic

from uploadai import errors, runtime, store as st

PLACEHOLDER = "{transcription}"
DEFAULT_TEMPERATURE = 0.5
MAX_TOKENS = 2048


@runtime_checkable
class Completer(Protocol):
    def stream(self, prompt: str, temperature: float) -> AsyncIterator[str]: ...


class ClaudeCompleter:
    def __init__(self, api_key: str | None = None, model: str | None = None,
                 client: anthropic.AsyncAnthropic | None = None):
        self._client = client or anthropic.AsyncAnthropic(
            api_key=api_key or os.environ.get("ANTHROPIC_API_KEY"),
        )
        self._model = model or runtime.CLAUDE_MODEL

    async def stream(self, prompt: str, temperature: float) -> AsyncIterator[str]:
        try:
            async with self._client.messages.stream(
                model=self._model,
                max_tokens=MAX_TOKENS,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except anthropic.APIError as exc:
            raise errors.CompletionProviderError(f"Completion provider failed: {exc}") from exc


def build_prompt(template: str, transcription: str) -> str:
    return template.replace(PLACEHOLDER, transcription, 1)


class CompletionService:
    def __init__(self, store: st.RecordStore, completer: Completer):
        self.store = store
        self.completer = completer

    def generate(self, video_id: str, template: str,
                 temperature: float | None = None) -> AsyncIterator[str]:
        """Validates the request and returns the provider's chunk stream.

        Every check runs before the provider is contacted.
        """
        if temperature is None:
            temperature = DEFAULT_TEMPERATURE
        if not 0.0 <= temperature <= 1.0:
            raise errors.ValidationError(f"temperature must be between 0 and 1, got {temperature}")
        vid = st.parse_id(video_id)
        record = self.store.get(vid)
        if not record.transcription:
            raise errors.MissingPrerequisiteError("Video transcription was not generated yet")
        prompt = build_prompt(template, record.transcription)
        print(f"[{vid}] Generating (temperature={temperature})...")
        return self.completer.stream(prompt, temperature)
