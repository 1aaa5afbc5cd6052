from __future__ import annotations

from .backup import back_up
from .destination import parse_destination
from .errors import (
    BackupError,
    CredentialMissing,
    FetchFailed,
    FolderAmbiguous,
    FolderLookupFailed,
    FolderNotFound,
    InvalidDestination,
    ListingFailed,
    TransferError,
    UploadFailed,
)
from .models import DriveFileRef, PipelineResult, S3Destination, TransferJob, TransferOutcome
from .transfer import MAX_CONCURRENT_TRANSFERS, TransferEngine

__all__ = [
    "back_up",
    "parse_destination",
    "BackupError",
    "CredentialMissing",
    "FetchFailed",
    "FolderAmbiguous",
    "FolderLookupFailed",
    "FolderNotFound",
    "InvalidDestination",
    "ListingFailed",
    "TransferError",
    "UploadFailed",
    "DriveFileRef",
    "PipelineResult",
    "S3Destination",
    "TransferJob",
    "TransferOutcome",
    "MAX_CONCURRENT_TRANSFERS",
    "TransferEngine",
]
