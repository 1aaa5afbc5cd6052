from __future__ import annotations

import io
import threading
import time
from types import SimpleNamespace
from typing import Dict, Iterable, List, Optional, Set

import pytest

from drivebackup.models import DriveFileRef


# ============================================================================
# Drive fakes
# ============================================================================

class _Call:
    def __init__(self, result):
        self._result = result

    def execute(self):
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


class FakeFiles:
    def __init__(self, responses: Iterable):
        self.responses = list(responses)
        self.list_calls: List[dict] = []
        self.media_calls: List[tuple] = []

    def list(self, **kwargs):
        self.list_calls.append(kwargs)
        return _Call(self.responses.pop(0))

    def get_media(self, fileId, **kwargs):
        self.media_calls.append(("get_media", fileId, None))
        return SimpleNamespace(uri=f"https://drive.test/files/{fileId}?alt=media")

    def export_media(self, fileId, mimeType):
        self.media_calls.append(("export_media", fileId, mimeType))
        return SimpleNamespace(uri=f"https://drive.test/files/{fileId}/export?mimeType={mimeType}&alt=media")


class FakeDrive:
    """Stands in for the googleapiclient Drive v3 resource."""

    def __init__(self, responses: Iterable = ()):
        self._files = FakeFiles(responses)

    def files(self):
        return self._files


class RawBody(io.BytesIO):
    decode_content = False


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"", reason: str = "OK"):
        self.status_code = status_code
        self.reason = reason
        self.raw = RawBody(body)
        self.closed = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, bodies: Optional[Dict[str, bytes]] = None, status: Optional[Dict[str, int]] = None):
        self.bodies = bodies or {}
        self.status = status or {}
        self.requests: List[str] = []
        self.responses: List[FakeResponse] = []

    def get(self, uri, stream=False):
        assert stream, "media must be requested with stream=True"
        self.requests.append(uri)
        file_id = uri.split("/files/")[1].split("/")[0].split("?")[0]
        code = self.status.get(file_id, 200)
        resp = FakeResponse(code, self.bodies.get(file_id, b"data-" + file_id.encode()), "OK" if code < 400 else "Not Found")
        self.responses.append(resp)
        return resp


# ============================================================================
# Transfer fakes
# ============================================================================

class ConcurrencyTracker:
    def __init__(self):
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.started: List[str] = []

    def start(self, name: str) -> None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.started.append(name)

    def finish(self) -> None:
        with self._lock:
            self.active -= 1


class FakeFetcher:
    def __init__(self, fail: Set[str] = frozenset(), tracker: Optional[ConcurrencyTracker] = None):
        self.fail = set(fail)
        self.tracker = tracker
        self.fetched: List[str] = []
        self.streams: List[io.BytesIO] = []
        self._lock = threading.Lock()

    def fetch(self, file: DriveFileRef):
        with self._lock:
            self.fetched.append(file.name)
        if self.tracker:
            self.tracker.start(file.name)
        if file.name in self.fail:
            if self.tracker:
                self.tracker.finish()
            raise ConnectionError(f"drive refused {file.name}")
        stream = io.BytesIO(b"x" * (file.size or 3))
        with self._lock:
            self.streams.append(stream)
        return stream


class FakeS3:
    def __init__(self, fail_keys: Set[str] = frozenset(), tracker: Optional[ConcurrencyTracker] = None, delay: float = 0.0):
        self.fail_keys = set(fail_keys)
        self.tracker = tracker
        self.delay = delay
        self.objects: Dict[tuple, bytes] = {}
        self.put_calls: List[dict] = []
        self.fileobj_calls: List[dict] = []
        self._lock = threading.Lock()

    def _maybe_fail(self, key: str, operation: str) -> None:
        if key in self.fail_keys:
            from botocore.exceptions import ClientError

            raise ClientError({"Error": {"Code": "InvalidDigest", "Message": "bad digest"}}, operation)

    def _finish(self):
        if self.delay:
            time.sleep(self.delay)
        if self.tracker:
            self.tracker.finish()

    def put_object(self, **kwargs):
        body = kwargs["Body"].read()
        try:
            self._maybe_fail(kwargs["Key"], "PutObject")
            with self._lock:
                self.put_calls.append(kwargs)
                self.objects[(kwargs["Bucket"], kwargs["Key"])] = body
        finally:
            self._finish()
        return {"ETag": '"etag"'}

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        body = fileobj.read()
        try:
            self._maybe_fail(key, "UploadPart")
            with self._lock:
                self.fileobj_calls.append({"Bucket": bucket, "Key": key, "ExtraArgs": ExtraArgs})
                self.objects[(bucket, key)] = body
        finally:
            self._finish()


def make_file(name: str, size: Optional[int] = 3, md5: Optional[str] = None, mime: str = "application/pdf", file_id: Optional[str] = None) -> DriveFileRef:
    return DriveFileRef(
        id=file_id or f"id-{name}",
        name=name,
        mime_type=mime,
        md5_checksum=md5,
        size=size,
        parents=("folder-1",),
    )


@pytest.fixture
def tracker() -> ConcurrencyTracker:
    return ConcurrencyTracker()
