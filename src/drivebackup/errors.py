from __future__ import annotations

from typing import Optional, Sequence

# Per-file phases
PHASE_FETCH = "fetch"
PHASE_EXPORT = "export"
PHASE_UPLOAD = "upload"


class BackupError(Exception):
    """Base class for everything the backup pipeline raises on purpose."""


class CredentialMissing(BackupError):
    def __init__(self, detail: str):
        super().__init__(f"Missing Google credentials: {detail}")
        self.detail = detail


class FolderNotFound(BackupError):
    def __init__(self, folder_name: str, parent_id: str):
        super().__init__(f"Could not find {folder_name} folder in drive (parent={parent_id}).")
        self.folder_name = folder_name
        self.parent_id = parent_id


class FolderAmbiguous(BackupError):
    def __init__(self, folder_name: str, parent_id: str, folder_ids: Sequence[str]):
        super().__init__(
            f"Found {len(folder_ids)} folders named {folder_name} in drive "
            f"(parent={parent_id}): {', '.join(folder_ids)}"
        )
        self.folder_name = folder_name
        self.parent_id = parent_id
        self.folder_ids = tuple(folder_ids)


class FolderLookupFailed(BackupError):
    def __init__(self, folder_name: str, cause: object):
        super().__init__(f"Could not query drive for {folder_name} folder: {cause}")
        self.folder_name = folder_name
        self.cause = cause


class ListingFailed(BackupError):
    def __init__(self, folder_id: str, cause: object):
        super().__init__(f"Could not list files in folder {folder_id}: {cause}")
        self.folder_id = folder_id
        self.cause = cause


class InvalidDestination(BackupError):
    def __init__(self, url: str, reason: str = "expected s3://bucket-name/some/folder"):
        super().__init__(f"Invalid destination {url!r}: {reason}")
        self.url = url
        self.reason = reason


class TransferError(BackupError):
    """A failure that is terminal for one file only."""

    def __init__(self, filename: str, phase: str, detail: str, cause: Optional[BaseException] = None):
        super().__init__(f"[{phase}] {filename}: {detail}")
        self.filename = filename
        self.phase = phase
        self.detail = detail
        self.cause = cause


class FetchFailed(TransferError):
    def __init__(self, filename: str, status_info: str, phase: str = PHASE_FETCH, cause: Optional[BaseException] = None):
        verb = "export" if phase == PHASE_EXPORT else "download"
        super().__init__(filename, phase, f"Could not {verb} file contents from drive ({status_info})", cause)
        self.status_info = status_info


class UploadFailed(TransferError):
    def __init__(self, filename: str, detail: str, cause: Optional[BaseException] = None):
        super().__init__(filename, PHASE_UPLOAD, f"Could not upload file contents ({detail})", cause)
