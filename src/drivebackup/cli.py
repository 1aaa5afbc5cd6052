from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .backup import DEFAULT_STORAGE_CLASS, back_up
from .clients import build_drive, build_s3, build_session
from .config import DEFAULT_SECRET_FILE, load_authorized_user_secret
from .errors import BackupError

logger = logging.getLogger("drivebackup")

LOG_FORMAT = "%(filename)s:%(lineno)d %(asctime)s [%(levelname)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def set_up_logging(level: int = logging.INFO) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)
    # Keep client libraries from drowning the per-file lines.
    for noisy in ("googleapiclient", "botocore", "boto3", "s3transfer", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def substitute_date(template: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return template.replace("{date}", today.strftime("%Y-%m-%d"))


def format_error_chain(exc: BaseException) -> str:
    parts = [f"Error: {exc}"]
    seen = {id(exc)}
    cause = exc.__cause__ or exc.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        parts.append(f"Caused by: {cause}")
        cause = cause.__cause__ or cause.__context__
    return "\n".join(parts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="back-up-drive-folder",
        description="Copy the files of one Google Drive folder into S3.",
    )
    parser.add_argument(
        "-s",
        "--s3-storage-class",
        default=DEFAULT_STORAGE_CLASS,
        help=(
            "Storage class for the stored objects, e.g. DEEP_ARCHIVE, GLACIER, GLACIER_IR, "
            "INTELLIGENT_TIERING, ONEZONE_IA, REDUCED_REDUNDANCY, STANDARD, STANDARD_IA "
            "(default: %(default)s)"
        ),
    )
    parser.add_argument(
        "--secret-file",
        default=str(DEFAULT_SECRET_FILE),
        help="Authorized-user JSON used when CLIENT_ID/CLIENT_SECRET/REFRESH_TOKEN are not set",
    )
    parser.add_argument("--region", default=None, help="AWS region for the S3 client")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    parser.add_argument("source", help="The Google Drive folder to back up (under My Drive)")
    parser.add_argument(
        "destination",
        help="Where to copy the files: s3://bucket-name/some/folder. {date} becomes today's date.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = build_parser().parse_args(argv)
    set_up_logging(logging.DEBUG if args.verbose else logging.INFO)
    logger.info("Starting")

    destination = substitute_date(args.destination)
    try:
        secret = load_authorized_user_secret(Path(args.secret_file))
        creds = secret.credentials()
        drive = build_drive(creds)
        session = build_session(creds)
        s3 = build_s3(args.region)

        result = asyncio.run(
            back_up(drive, session, s3, args.source, destination, args.s3_storage_class)
        )
        result.raise_for_failure()
    except BackupError as exc:
        logger.error("%s", format_error_chain(exc))
        raise SystemExit(1)

    logger.info("Backed up %s to %s: %s", args.source, destination, result.summary())
    raise SystemExit(0)


if __name__ == "__main__":
    main(sys.argv[1:])
