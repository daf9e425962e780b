import asyncio
import uuid
from types import SimpleNamespace

import pytest

from uploadai import errors, generate
from conftest import FakeCompleter


async def _collect(chunks):
    return [c async for c in chunks]


@pytest.fixture
def transcribed(store, record):
    store.set_transcription(record.id, "hello world")
    return record


@pytest.fixture
def service(store, completer):
    return generate.CompletionService(store, completer)


def test_build_prompt_substitutes_placeholder():
    assert generate.build_prompt("Summarize: {transcription}", "hello world") == "Summarize: hello world"


def test_build_prompt_replaces_first_placeholder_only():
    out = generate.build_prompt("{transcription} / {transcription}", "x")
    assert out == "x / {transcription}"


def test_build_prompt_without_placeholder():
    assert generate.build_prompt("Just a question", "ignored") == "Just a question"


def test_forwards_chunks_in_order(service, transcribed, completer):
    chunks = asyncio.run(_collect(service.generate(transcribed.id, "Summarize: {transcription}", 0.2)))
    assert chunks == ["A", "B", "C"]
    assert completer.calls == [("Summarize: hello world", 0.2)]


def test_temperature_defaults_to_half(service, transcribed, completer):
    asyncio.run(_collect(service.generate(transcribed.id, "{transcription}")))
    assert completer.calls[0][1] == 0.5


@pytest.mark.parametrize("temperature", [1.5, -0.1, float("nan")])
def test_temperature_out_of_range_rejected(service, transcribed, completer, temperature):
    with pytest.raises(errors.ValidationError):
        service.generate(transcribed.id, "{transcription}", temperature)
    assert completer.calls == []


@pytest.mark.parametrize("template,temperature", [("{transcription}", 0.0), ("anything", 1.0), ("", None)])
def test_requires_transcription(service, record, completer, template, temperature):
    with pytest.raises(errors.MissingPrerequisiteError):
        service.generate(record.id, template, temperature)
    assert completer.calls == []


def test_unknown_video(service):
    with pytest.raises(errors.NotFoundError):
        service.generate(str(uuid.uuid4()), "{transcription}")


def test_malformed_video_id(service):
    with pytest.raises(errors.ValidationError):
        service.generate("123", "{transcription}")


def test_provider_failure_mid_stream_propagates(store, transcribed):
    completer = FakeCompleter(chunks=["A", "B", "C"], fail_at=2)
    service = generate.CompletionService(store, completer)

    async def run():
        seen = []
        with pytest.raises(errors.CompletionProviderError):
            async for chunk in service.generate(transcribed.id, "{transcription}"):
                seen.append(chunk)
        return seen

    assert asyncio.run(run()) == ["A", "B"]


class _FakeStream:
    def __init__(self, texts):
        self.text_stream = self._iter(texts)

    async def _iter(self, texts):
        for t in texts:
            yield t

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _FakeMessages:
    def __init__(self, texts):
        self.texts = texts
        self.kwargs = None

    def stream(self, **kwargs):
        self.kwargs = kwargs
        return _FakeStream(self.texts)


def test_claude_completer_streams_text():
    messages = _FakeMessages(["Hel", "lo"])
    completer = generate.ClaudeCompleter(model="claude-test", client=SimpleNamespace(messages=messages))
    chunks = asyncio.run(_collect(completer.stream("Say hello", 0.3)))
    assert chunks == ["Hel", "lo"]
    assert messages.kwargs["model"] == "claude-test"
    assert messages.kwargs["temperature"] == 0.3
    assert messages.kwargs["messages"] == [{"role": "user", "content": "Say hello"}]
