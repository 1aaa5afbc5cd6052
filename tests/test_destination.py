from __future__ import annotations

import pytest

from drivebackup.destination import parse_destination
from drivebackup.errors import InvalidDestination
from drivebackup.models import S3Destination


@pytest.mark.parametrize(
    "url, bucket, prefix",
    [
        ("s3://bucket/a/b/", "bucket", "a/b/"),
        ("s3://bucket", "bucket", ""),
        ("s3://bucket/", "bucket", ""),
        ("s3://my-bucket/backups", "my-bucket", "backups"),
        ("s3://my-bucket/drive/2022-11-04/", "my-bucket", "drive/2022-11-04/"),
    ],
)
def test_parse_destination(url, bucket, prefix):
    assert parse_destination(url) == S3Destination(bucket, prefix)


@pytest.mark.parametrize(
    "url",
    [
        "https://bucket/a",
        "bucket/a",
        "s3:///no-bucket",
        "",
        "s3://bucket/a?versionId=1",
    ],
)
def test_parse_destination_rejects(url):
    with pytest.raises(InvalidDestination) as info:
        parse_destination(url)
    assert info.value.url == url


def test_key_is_prefix_plus_name():
    assert parse_destination("s3://b/x/").key_for("report.pdf") == "x/report.pdf"
    assert parse_destination("s3://b").key_for("report.pdf") == "report.pdf"
