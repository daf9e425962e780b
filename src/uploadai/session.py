import shutil
import tempfile
from pathlib import Path
from typing import Callable

from uploadai import transcode, types as t
from uploadai.client import ApiClient


class UploadSession:
    """Drives one selected video through convert -> upload -> transcribe.

    Status only moves forward along `types.STATUS_ORDER`, or to `error`.
    `select_file` resets to `waiting` from any state; work already in flight
    keeps running but its results are ignored.
    """

    def __init__(
        self,
        transcoder: transcode.Transcoder,
        api: ApiClient,
        on_uploaded: Callable[[str], None] | None = None,
        on_status: Callable[[str], None] | None = None,
        on_progress: Callable[[float], None] | None = None,
    ):
        self.transcoder = transcoder
        self.api = api
        self.on_uploaded = on_uploaded
        self.on_status = on_status
        self.on_progress = on_progress

        self.status = t.WAITING
        self.history: list[str] = [t.WAITING]
        self.source_file: Path | None = None
        self.prompt: str | None = None
        self.derived_audio: Path | None = None
        self.video_id: str | None = None
        self.error: Exception | None = None
        self._run = 0
        self._workdir: Path | None = None

    def _set(self, status: str):
        self.status = status
        self.history.append(status)
        print(f"[session] {t.STATUS_MESSAGES[status]}")
        if self.on_status:
            self.on_status(status)

    def _discard(self):
        if self._workdir is not None:
            shutil.rmtree(self._workdir, ignore_errors=True)
        self._workdir = None
        self.derived_audio = None

    def select_file(self, path: Path):
        self._run += 1
        self._discard()
        self.source_file = path
        self.prompt = None
        self.video_id = None
        self.error = None
        self.history = []
        self._set(t.WAITING)

    def close(self):
        self._run += 1
        self._discard()

    async def submit(self, prompt: str = "") -> str | None:
        """Runs the session to `success` and returns the created video id.

        Returns None when there is nothing to submit, when the run was
        abandoned by `select_file`, or when it ended in `error`.
        """
        if self.source_file is None or self.status != t.WAITING:
            return None

        run = self._run
        workdir = Path(tempfile.mkdtemp(prefix="uploadai_session_"))
        self._workdir = workdir
        self.prompt = prompt

        def stale() -> bool:
            if run != self._run:
                shutil.rmtree(workdir, ignore_errors=True)
                return True
            return False

        def progress(fraction: float):
            if run == self._run and self.on_progress:
                self.on_progress(fraction)

        self._set(t.CONVERTING)
        try:
            audio = await self.transcoder.convert(self.source_file, workdir / "audio.mp3", progress)
            if stale():
                return None
            self.derived_audio = audio

            self._set(t.UPLOADING)
            video_id = await self.api.upload(audio)
            if stale():
                return None
            self.video_id = video_id

            self._set(t.GENERATING)
            await self.api.transcribe(video_id, prompt)
            if stale():
                return None
        except Exception as exc:
            if stale():
                return None
            print(f"[session] Failed: {type(exc).__name__}: {exc}")
            self.error = exc
            self._set(t.ERROR)
            return None

        self._set(t.SUCCESS)
        if self.on_uploaded:
            self.on_uploaded(video_id)
        return video_id
