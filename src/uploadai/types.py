from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

WAITING = "waiting"
CONVERTING = "converting"
UPLOADING = "uploading"
GENERATING = "generating"
SUCCESS = "success"
ERROR = "error"

# Forward order of an upload session. ERROR is terminal and sits outside it.
STATUS_ORDER = (WAITING, CONVERTING, UPLOADING, GENERATING, SUCCESS)

STATUS_MESSAGES = {
    WAITING: "Upload video",
    CONVERTING: "Converting...",
    UPLOADING: "Transcribing...",
    GENERATING: "Loading...",
    SUCCESS: "Success!",
    ERROR: "Failed",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class VideoRecord:
    id: str
    name: str
    path: str
    transcription: str | None = None
    created_at: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "VideoRecord":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            path=data["path"],
            transcription=data.get("transcription"),
            created_at=data.get("created_at") or _now(),
        )


@dataclass(frozen=True)
class PromptTemplate:
    id: str
    title: str
    template: str
