from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import TransferError

FOLDER_MIME = "application/vnd.google-apps.folder"


def _parse_size(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class DriveFileRef:
    id: str
    name: str
    mime_type: str
    md5_checksum: Optional[str] = None
    size: Optional[int] = None
    parents: Tuple[str, ...] = ()

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "DriveFileRef":
        return cls(
            id=item["id"],
            name=item.get("name") or item["id"],
            mime_type=item.get("mimeType", "application/octet-stream"),
            md5_checksum=item.get("md5Checksum") or None,
            size=_parse_size(item.get("size")),
            parents=tuple(item.get("parents") or ()),
        )


@dataclass(frozen=True)
class S3Destination:
    bucket: str
    prefix: str = ""

    def key_for(self, name: str) -> str:
        # Drive names carry no path separators, so plain concatenation is the key.
        return f"{self.prefix}{name}"

    def __str__(self) -> str:
        return f"s3://{self.bucket}/{self.prefix}"


@dataclass(frozen=True)
class TransferJob:
    file: DriveFileRef
    destination: S3Destination
    storage_class: str

    @property
    def key(self) -> str:
        return self.destination.key_for(self.file.name)


@dataclass(frozen=True)
class TransferOutcome:
    job: TransferJob
    error: Optional[TransferError] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def filename(self) -> str:
        return self.job.file.name


@dataclass
class PipelineResult:
    """Aggregate of every transfer outcome, in completion order."""

    outcomes: List[TransferOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failures(self) -> List[TransferOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def first_error(self) -> Optional[TransferError]:
        for o in self.outcomes:
            if o.error is not None:
                return o.error
        return None

    def raise_for_failure(self) -> None:
        err = self.first_error
        if err is not None:
            raise err

    def summary(self) -> str:
        return f"copied={len(self.outcomes) - len(self.failures)} failed={len(self.failures)}"
