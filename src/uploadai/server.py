import uuid
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from uploadai import errors, generate, prompts, runtime, store as st, transcribe

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}
UPLOAD_CHUNK = 64 * 1024


class VideoResult(BaseModel):
    id: str
    name: str
    path: str
    transcription: str | None = None
    created_at: str


class UploadResponse(BaseModel):
    video: VideoResult


class TranscriptionRequest(BaseModel):
    prompt: str


class TranscriptionResponse(BaseModel):
    transcription: str


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_id: uuid.UUID = Field(alias="videoId")
    prompt: str
    temperature: float = Field(default=generate.DEFAULT_TEMPERATURE, ge=0.0, le=1.0, strict=True)


class PromptResult(BaseModel):
    id: str
    title: str
    template: str


async def _forward(first: str | None, chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    try:
        if first is None:
            return
        yield first
        async for chunk in chunks:
            yield chunk
    except errors.ProviderError as exc:
        print(f"Completion stream ended early: {exc}")
    finally:
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()


def create_app(
    store: st.RecordStore | None = None,
    transcriber: transcribe.Transcriber | None = None,
    completer: generate.Completer | None = None,
    upload_dir: Path | None = None,
    max_upload_bytes: int = runtime.MAX_UPLOAD_BYTES,
) -> FastAPI:
    app = FastAPI(title="Upload AI")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _store = store or st.JsonStore(runtime.records_dir())
    _upload_dir = upload_dir or runtime.uploads_dir()
    _upload_dir.mkdir(parents=True, exist_ok=True)
    transcription = transcribe.TranscriptionService(_store, transcriber or transcribe.make_transcriber())
    completion = generate.CompletionService(_store, completer or generate.ClaudeCompleter())

    @app.exception_handler(errors.UploadAIError)
    async def domain_error(request: Request, exc: errors.UploadAIError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        detail = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
        return JSONResponse({"error": "Invalid request", "detail": detail}, status_code=400)

    @app.get("/prompts", response_model=list[PromptResult])
    def prompt_list():
        return [PromptResult(id=p.id, title=p.title, template=p.template) for p in prompts.all_prompts()]

    @app.post("/videos", response_model=UploadResponse)
    async def upload_video(file: UploadFile = File(...)):
        name = Path(file.filename or "")
        if name.suffix.lower() != ".mp3":
            raise errors.ValidationError("Invalid input type, please upload a MP3.")
        dest = _upload_dir / f"{name.stem}-{uuid.uuid4()}.mp3"
        written = 0
        with open(dest, "wb") as f:
            while chunk := await file.read(UPLOAD_CHUNK):
                written += len(chunk)
                if written > max_upload_bytes:
                    f.close()
                    dest.unlink(missing_ok=True)
                    raise errors.PayloadTooLargeError("File too large")
                f.write(chunk)
        record = _store.create(str(dest), name=name.name)
        print(f"[{record.id}] Stored upload {name.name} ({written} bytes)")
        return UploadResponse(video=VideoResult(**record.to_dict()))

    @app.post("/videos/{video_id}/transcription", response_model=TranscriptionResponse)
    def create_transcription(video_id: uuid.UUID, body: TranscriptionRequest):
        text = transcription.transcribe(str(video_id), body.prompt)
        return JSONResponse({"transcription": text}, headers=CORS_HEADERS)

    @app.post("/ai/generate")
    async def generate_completion(body: GenerateRequest):
        chunks = completion.generate(str(body.video_id), body.prompt, body.temperature)
        # Pull the first chunk so provider failures become a 502 before the body starts.
        try:
            first = await anext(chunks)
        except StopAsyncIteration:
            first = None
        return StreamingResponse(
            _forward(first, chunks),
            media_type="text/plain; charset=utf-8",
            headers=CORS_HEADERS,
        )

    return app
