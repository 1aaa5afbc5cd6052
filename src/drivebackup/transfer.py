from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import time
from typing import Any, BinaryIO, Dict, Iterable, Union

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from .content import content_type_for, export_mime_type_for
from .destination import parse_destination
from .errors import PHASE_EXPORT, PHASE_FETCH, FetchFailed, TransferError, UploadFailed
from .models import DriveFileRef, PipelineResult, S3Destination, TransferJob, TransferOutcome

logger = logging.getLogger(__name__)

# Trades Drive/S3 rate limits against throughput.
MAX_CONCURRENT_TRANSFERS = 4


def content_md5_from_hex(md5_hex: str) -> str:
    """Drive reports md5 as hex; S3 wants the base64 of the raw digest."""
    return base64.b64encode(binascii.unhexlify(md5_hex)).decode("ascii")


def log_throughput(file: DriveFileRef, elapsed: float) -> None:
    if file.size is None or elapsed <= 0:
        logger.info(
            "Throughput for file %s is indeterminate (size=%s, %.3f s)",
            file.name,
            file.size if file.size is not None else "unknown",
            elapsed,
        )
        return
    logger.info(
        "Throughput for file %s of size %d B: %.0f B/s",
        file.name,
        file.size,
        file.size / elapsed,
    )


class TransferEngine:
    """
    Copies Drive files into S3 with a hard ceiling on in-flight jobs.

    *fetcher* is anything with ``fetch(file) -> readable stream`` (normally a
    ``ContentFetcher``); *s3* is a boto3 S3 client. Both are shared by every
    job and never mutated. Blocking calls run in worker threads so the
    event loop only schedules.
    """

    def __init__(self, fetcher, s3, concurrency: int = MAX_CONCURRENT_TRANSFERS):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._fetcher = fetcher
        self._s3 = s3
        self._concurrency = concurrency

    async def run(
        self,
        files: Iterable[DriveFileRef],
        destination: Union[str, S3Destination],
        storage_class: str,
    ) -> PipelineResult:
        # InvalidDestination is fatal and must surface before any job starts.
        if isinstance(destination, S3Destination):
            dest = destination
        else:
            dest = parse_destination(destination)
        jobs = [TransferJob(file=f, destination=dest, storage_class=storage_class) for f in files]
        logger.info(
            "Copying %d file(s) to %s (storage class %s, %d concurrent)",
            len(jobs),
            dest,
            storage_class,
            self._concurrency,
        )

        semaphore = asyncio.Semaphore(self._concurrency)
        sink: "asyncio.Queue[TransferOutcome]" = asyncio.Queue()

        async def worker(job: TransferJob) -> None:
            async with semaphore:
                outcome = await self._copy(job)
            sink.put_nowait(outcome)

        await asyncio.gather(*(worker(job) for job in jobs))

        result = PipelineResult()
        while not sink.empty():
            result.outcomes.append(sink.get_nowait())

        if result.ok:
            logger.info("All %d file(s) copied to %s", len(result.outcomes), dest)
        else:
            logger.error("Copy finished with errors: %s", result.summary())
        return result

    # --------------------
    # Single job
    # --------------------

    async def _copy(self, job: TransferJob) -> TransferOutcome:
        file = job.file
        logger.info("Copying file %s", file.name)
        start = time.monotonic()
        try:
            stream = await asyncio.to_thread(self._fetch, file)
            try:
                await asyncio.to_thread(self._upload, job, stream)
            finally:
                stream.close()
        except TransferError as exc:
            logger.error("Error during copy of %s [%s]: %s", file.name, exc.phase, exc)
            return TransferOutcome(job=job, error=exc, elapsed=time.monotonic() - start)

        elapsed = time.monotonic() - start
        log_throughput(file, elapsed)
        return TransferOutcome(job=job, elapsed=elapsed)

    def _fetch(self, file: DriveFileRef) -> BinaryIO:
        try:
            return self._fetcher.fetch(file)
        except TransferError:
            raise
        except Exception as exc:
            phase = PHASE_EXPORT if export_mime_type_for(file.mime_type) else PHASE_FETCH
            raise FetchFailed(file.name, repr(exc), phase=phase, cause=exc) from exc

    def _upload(self, job: TransferJob, stream: BinaryIO) -> None:
        file = job.file
        extra: Dict[str, Any] = {
            "StorageClass": job.storage_class,
            "ContentType": content_type_for(file),
            "Metadata": {"drive_file_id": file.id, "drive_source_mime": file.mime_type},
        }
        exported = export_mime_type_for(file.mime_type) is not None

        content_md5 = None
        if file.md5_checksum and not exported:
            try:
                content_md5 = content_md5_from_hex(file.md5_checksum)
            except (binascii.Error, ValueError) as exc:
                raise UploadFailed(file.name, f"bad md5Checksum {file.md5_checksum!r}", exc) from exc

        try:
            if file.size is not None and not exported:
                params: Dict[str, Any] = {
                    "Bucket": job.destination.bucket,
                    "Key": job.key,
                    "Body": stream,
                    "ContentLength": file.size,
                    **extra,
                }
                if content_md5 is not None:
                    params["ContentMD5"] = content_md5
                self._s3.put_object(**params)
            else:
                # Exports have no length up front; multipart streams them in parts.
                if content_md5 is not None:
                    logger.debug(
                        "Not attaching Content-MD5 for %s: size unknown, uploading in parts", file.name
                    )
                self._s3.upload_fileobj(stream, job.destination.bucket, job.key, ExtraArgs=extra)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            raise UploadFailed(file.name, f"{code} for s3://{job.destination.bucket}/{job.key}", exc) from exc
        except (BotoCoreError, S3UploadFailedError) as exc:
            raise UploadFailed(file.name, str(exc), exc) from exc
        except Exception as exc:
            raise UploadFailed(file.name, repr(exc), exc) from exc
