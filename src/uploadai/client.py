from pathlib import Path
from typing import AsyncIterator

import httpx

from uploadai import runtime


class ApiClient:
    """Async client for the upload, transcription and generation routes."""

    def __init__(self, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient(base_url=base_url or runtime.API_URL, timeout=None)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def upload(self, audio_path: Path) -> str:
        with open(audio_path, "rb") as f:
            resp = await self._client.post(
                "/videos", files={"file": (audio_path.name, f, "audio/mpeg")},
            )
        resp.raise_for_status()
        return resp.json()["video"]["id"]

    async def transcribe(self, video_id: str, prompt: str) -> str:
        resp = await self._client.post(f"/videos/{video_id}/transcription", json={"prompt": prompt})
        resp.raise_for_status()
        return resp.json()["transcription"]

    async def prompts(self) -> list[dict]:
        resp = await self._client.get("/prompts")
        resp.raise_for_status()
        return resp.json()

    async def generate(self, video_id: str, prompt: str,
                       temperature: float | None = None) -> AsyncIterator[str]:
        body = {"videoId": video_id, "prompt": prompt}
        if temperature is not None:
            body["temperature"] = temperature
        async with self._client.stream("POST", "/ai/generate", json=body) as resp:
            if resp.is_error:
                await resp.aread()
                resp.raise_for_status()
            async for text in resp.aiter_text():
                yield text
