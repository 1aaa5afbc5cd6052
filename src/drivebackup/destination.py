from __future__ import annotations

from urllib.parse import urlparse

from .errors import InvalidDestination
from .models import S3Destination

S3_SCHEME = "s3"


def parse_destination(url: str) -> S3Destination:
    """
    Split ``s3://bucket/some/prefix/`` into bucket and key prefix.

    Only one leading slash is stripped from the path; a trailing slash is
    kept exactly as given, so ``s3://bucket/backups`` yields keys like
    ``backupsreport.pdf``.
    """
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise InvalidDestination(url, str(exc)) from exc

    if parsed.scheme != S3_SCHEME:
        raise InvalidDestination(url, f"scheme must be {S3_SCHEME}://")
    if not parsed.netloc:
        raise InvalidDestination(url, "missing bucket name")
    if parsed.query or parsed.fragment or parsed.params:
        raise InvalidDestination(url, "query strings and fragments are not allowed")

    path = parsed.path
    if path.startswith("/"):
        path = path[1:]
    return S3Destination(bucket=parsed.netloc, prefix=path)
