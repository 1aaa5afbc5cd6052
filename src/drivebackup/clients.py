from __future__ import annotations

from typing import Optional

import boto3
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build


def build_drive(creds: Credentials):
    return build("drive", "v3", credentials=creds, cache_discovery=False)


def build_session(creds: Credentials) -> AuthorizedSession:
    # Media bodies go through this session so they can be streamed.
    return AuthorizedSession(creds)


def build_s3(region: Optional[str] = None):
    session = boto3.Session(region_name=region) if region else boto3.Session()
    return session.client("s3")
