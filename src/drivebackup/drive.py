from __future__ import annotations

import logging
from typing import List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError

from .errors import FolderAmbiguous, FolderLookupFailed, FolderNotFound, ListingFailed
from .models import FOLDER_MIME, DriveFileRef

logger = logging.getLogger(__name__)

ROOT_FOLDER_ID = "root"

FOLDER_FIELDS = "nextPageToken, files(id,name,parents,size,mimeType)"
LISTING_FIELDS = "nextPageToken, files(id,name,parents,md5Checksum,size,mimeType)"

# Everything the Drive client raises for API, auth and transport failures.
DRIVE_ERRORS = (HttpError, OSError, httplib2.HttpLib2Error, GoogleAuthError)


def escape_query(value: str) -> str:
    """Escape a value for use inside a quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


# --------------------
# Folder resolution
# --------------------

def resolve_folder(drive, folder_name: str, parent_id: str = ROOT_FOLDER_ID) -> str:
    query = (
        f"name = '{escape_query(folder_name)}' and "
        f"mimeType = '{FOLDER_MIME}' and "
        f"'{escape_query(parent_id)}' in parents"
    )
    # Drive may hand back a short or empty page with a token, so follow them all.
    folders = []
    page_token: Optional[str] = None
    while True:
        try:
            resp = drive.files().list(q=query, fields=FOLDER_FIELDS, pageToken=page_token).execute()
        except DRIVE_ERRORS as exc:
            raise FolderLookupFailed(folder_name, exc) from exc

        folders.extend(resp.get("files", []))
        page_token = resp.get("nextPageToken")
        if not page_token:
            break

    if not folders:
        raise FolderNotFound(folder_name, parent_id)
    if len(folders) > 1:
        raise FolderAmbiguous(folder_name, parent_id, [f["id"] for f in folders])

    folder_id = folders[0]["id"]
    logger.info("Resolved folder %s to id %s", folder_name, folder_id)
    return folder_id


# --------------------
# Listing
# --------------------

def list_files(drive, folder_id: str) -> List[DriveFileRef]:
    """
    Return every non-folder file directly under *folder_id*.

    Pages are followed until the server stops returning a nextPageToken.
    A failure on any page aborts the whole listing.
    """
    query = f"'{escape_query(folder_id)}' in parents and mimeType != '{FOLDER_MIME}'"
    files: List[DriveFileRef] = []
    page_token: Optional[str] = None
    pages = 0

    while True:
        try:
            resp = drive.files().list(
                q=query,
                fields=LISTING_FIELDS,
                pageToken=page_token,
            ).execute()
        except DRIVE_ERRORS as exc:
            raise ListingFailed(folder_id, exc) from exc

        pages += 1
        for item in resp.get("files", []):
            files.append(DriveFileRef.from_api(item))

        page_token = resp.get("nextPageToken")
        if not page_token:
            break

    logger.info("Listed %d file(s) in folder %s over %d page(s)", len(files), folder_id, pages)
    return files
