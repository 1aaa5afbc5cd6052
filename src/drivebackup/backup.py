from __future__ import annotations

import asyncio
import logging

from .content import ContentFetcher
from .destination import parse_destination
from .drive import ROOT_FOLDER_ID, list_files, resolve_folder
from .models import PipelineResult
from .transfer import MAX_CONCURRENT_TRANSFERS, TransferEngine

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_CLASS = "STANDARD"


async def back_up(
    drive,
    session,
    s3,
    folder_name: str,
    destination: str,
    storage_class: str = DEFAULT_STORAGE_CLASS,
    parent_id: str = ROOT_FOLDER_ID,
    concurrency: int = MAX_CONCURRENT_TRANSFERS,
) -> PipelineResult:
    """
    Copy every file directly inside the Drive folder *folder_name* to *destination*.

    Folder, listing and destination errors are raised; per-file errors are
    collected in the returned result.
    """
    # Fail on a bad destination before touching Drive.
    dest = parse_destination(destination)

    folder_id = await asyncio.to_thread(resolve_folder, drive, folder_name, parent_id)
    files = await asyncio.to_thread(list_files, drive, folder_id)

    engine = TransferEngine(ContentFetcher(drive, session), s3, concurrency=concurrency)
    return await engine.run(files, dest, storage_class)
