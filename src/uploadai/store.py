import json
import threading
import uuid
from pathlib import Path
from typing import Protocol, runtime_checkable

from uploadai import errors, types as t


@runtime_checkable
class RecordStore(Protocol):
    def create(self, path: str, name: str = "") -> t.VideoRecord: ...
    def get(self, video_id: str) -> t.VideoRecord: ...
    def set_transcription(self, video_id: str, transcription: str) -> t.VideoRecord: ...


class MemoryStore:
    def __init__(self):
        self._records: dict[str, t.VideoRecord] = {}
        self._lock = threading.Lock()

    def create(self, path: str, name: str = "") -> t.VideoRecord:
        record = t.VideoRecord(id=str(uuid.uuid4()), name=name, path=path)
        with self._lock:
            self._records[record.id] = record
        return t.VideoRecord.from_dict(record.to_dict())

    def get(self, video_id: str) -> t.VideoRecord:
        with self._lock:
            record = self._records.get(video_id)
        if record is None:
            raise errors.NotFoundError(f"Video {video_id} not found")
        return t.VideoRecord.from_dict(record.to_dict())

    def set_transcription(self, video_id: str, transcription: str) -> t.VideoRecord:
        """Stores the transcription unless one is already set; returns the stored record."""
        with self._lock:
            record = self._records.get(video_id)
            if record is None:
                raise errors.NotFoundError(f"Video {video_id} not found")
            if not record.transcription:
                record.transcription = transcription
            return t.VideoRecord.from_dict(record.to_dict())


class JsonStore:
    """One `<id>.json` file per record under `root`."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, video_id: str) -> Path:
        return self.root / f"{video_id}.json"

    def _load(self, video_id: str) -> t.VideoRecord:
        try:
            uuid.UUID(video_id)
        except ValueError:
            raise errors.NotFoundError(f"Video {video_id} not found")
        p = self._path(video_id)
        if not p.exists():
            raise errors.NotFoundError(f"Video {video_id} not found")
        return t.VideoRecord.from_dict(json.loads(p.read_text()))

    def _save(self, record: t.VideoRecord):
        tmp = self._path(record.id).with_suffix(".json.tmp")
        tmp.write_text(json.dumps(record.to_dict(), indent=2))
        tmp.replace(self._path(record.id))

    def create(self, path: str, name: str = "") -> t.VideoRecord:
        record = t.VideoRecord(id=str(uuid.uuid4()), name=name, path=path)
        with self._lock:
            self._save(record)
        return record

    def get(self, video_id: str) -> t.VideoRecord:
        with self._lock:
            return self._load(video_id)

    def set_transcription(self, video_id: str, transcription: str) -> t.VideoRecord:
        with self._lock:
            record = self._load(video_id)
            if not record.transcription:
                record.transcription = transcription
                self._save(record)
            return record


def parse_id(video_id) -> str:
    try:
        return str(uuid.UUID(str(video_id)))
    except ValueError:
        raise errors.ValidationError(f"Invalid video id: {video_id!r}")
