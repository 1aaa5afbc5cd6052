from __future__ import annotations

import asyncio
import logging
import os

from drivebackup.backup import DEFAULT_STORAGE_CLASS, back_up
from drivebackup.cli import substitute_date
from drivebackup.clients import build_drive, build_s3, build_session
from drivebackup.config import AuthorizedUserSecret

# ======================
# Configuration
# ======================

SECRET_ID = os.environ.get("DRIVEBACKUP_SECRET_ID", "drivebackup/google-oauth")

logger = logging.getLogger()
logger.setLevel(logging.INFO)


# ======================
# Lambda entrypoint
# ======================

def handler(event, context):
    """
    Event: {"source": "<drive folder>", "destination": "s3://bucket/{date}/",
            "storage_class": "GLACIER"}  (storage_class optional)
    """
    source = event["source"]
    destination = substitute_date(event["destination"])
    storage_class = event.get("storage_class") or DEFAULT_STORAGE_CLASS

    secret = AuthorizedUserSecret.from_secrets_manager(SECRET_ID)
    creds = secret.credentials()
    drive = build_drive(creds)
    session = build_session(creds)
    s3 = build_s3()

    result = asyncio.run(back_up(drive, session, s3, source, destination, storage_class))
    # Surface failures so Lambda marks the invocation failed.
    result.raise_for_failure()

    return {
        "status": "ok",
        "source": source,
        "destination": destination,
        "copied": len(result.outcomes),
    }
