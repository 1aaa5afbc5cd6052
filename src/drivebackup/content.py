from __future__ import annotations

import logging
from typing import BinaryIO, Optional

import requests
from google.auth.exceptions import GoogleAuthError

from .errors import PHASE_EXPORT, PHASE_FETCH, FetchFailed
from .models import DriveFileRef

logger = logging.getLogger(__name__)

# Google native formats → export formats
GOOGLE_EXPORTS = {
    "application/vnd.google-apps.spreadsheet": (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    ),
    "application/vnd.google-apps.document": (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    ),
    "application/vnd.google-apps.drawing": "image/svg+xml",
    "application/vnd.google-apps.presentation": (
        "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    ),
}


def export_mime_type_for(mime_type: str) -> Optional[str]:
    """Return the export format for a Drive-native type, or None for a raw download."""
    return GOOGLE_EXPORTS.get(mime_type)


def content_type_for(file: DriveFileRef) -> str:
    return export_mime_type_for(file.mime_type) or file.mime_type


class ContentFetcher:
    """Opens a streamed body for one Drive file, exporting native documents."""

    def __init__(self, drive, session: requests.Session):
        self._drive = drive
        self._session = session

    def _media_uri(self, file: DriveFileRef, export_mime: Optional[str]) -> str:
        # Only the request URI is used; the body is pulled through the
        # authorized session so it can be streamed.
        if export_mime:
            req = self._drive.files().export_media(fileId=file.id, mimeType=export_mime)
        else:
            req = self._drive.files().get_media(fileId=file.id, supportsAllDrives=True)
        return req.uri

    def fetch(self, file: DriveFileRef) -> BinaryIO:
        export_mime = export_mime_type_for(file.mime_type)
        phase = PHASE_EXPORT if export_mime else PHASE_FETCH
        if export_mime:
            logger.info("Export mimetype for file %s is %s", file.name, export_mime)

        try:
            resp = self._session.get(self._media_uri(file, export_mime), stream=True)
        except (requests.RequestException, GoogleAuthError) as exc:
            raise FetchFailed(file.name, str(exc), phase=phase, cause=exc) from exc

        if not resp.ok:
            status_info = f"HTTP {resp.status_code} {resp.reason or ''}".strip()
            resp.close()
            raise FetchFailed(file.name, status_info, phase=phase)

        resp.raw.decode_content = True
        return resp.raw
