from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import boto3
from google.oauth2.credentials import Credentials

from .errors import CredentialMissing

# ======================
# Configuration
# ======================

SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_SECRET_FILE = Path("private/authorized_user_secret.json")

ENV_CLIENT_ID = "CLIENT_ID"
ENV_CLIENT_SECRET = "CLIENT_SECRET"
ENV_REFRESH_TOKEN = "REFRESH_TOKEN"
ENV_TOKEN_URI = "TOKEN_URI"


@dataclass(frozen=True)
class AuthorizedUserSecret:
    """OAuth refresh-token credentials for one Google user, read once at startup."""

    client_id: str
    client_secret: str
    refresh_token: str
    token_uri: str = DEFAULT_TOKEN_URI

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], source: str) -> "AuthorizedUserSecret":
        # Secrets Manager payloads wrap the token the same way the Lambda did.
        if isinstance(data.get("token"), Mapping):
            data = data["token"]
        missing = [k for k in ("client_id", "client_secret", "refresh_token") if not data.get(k)]
        if missing:
            raise CredentialMissing(f"{source} lacks {', '.join(missing)}")
        return cls(
            client_id=data["client_id"],
            client_secret=data["client_secret"],
            refresh_token=data["refresh_token"],
            token_uri=data.get("token_uri") or DEFAULT_TOKEN_URI,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuthorizedUserSecret":
        env = os.environ if environ is None else environ
        missing = [k for k in (ENV_CLIENT_ID, ENV_CLIENT_SECRET, ENV_REFRESH_TOKEN) if not env.get(k)]
        if missing:
            raise CredentialMissing(f"environment variable(s) {', '.join(missing)} not set")
        return cls(
            client_id=env[ENV_CLIENT_ID],
            client_secret=env[ENV_CLIENT_SECRET],
            refresh_token=env[ENV_REFRESH_TOKEN],
            token_uri=env.get(ENV_TOKEN_URI) or DEFAULT_TOKEN_URI,
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AuthorizedUserSecret":
        path = Path(path)
        if not path.exists():
            raise CredentialMissing(f"{path} does not exist")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise CredentialMissing(f"{path} is not valid JSON ({exc})") from exc
        return cls.from_mapping(data, str(path))

    @classmethod
    def from_secrets_manager(cls, secret_id: str, client=None) -> "AuthorizedUserSecret":
        sm = client or boto3.client("secretsmanager")
        resp = sm.get_secret_value(SecretId=secret_id)
        secret_string = resp.get("SecretString")
        if not secret_string:
            raise CredentialMissing(f"secret {secret_id} has no SecretString")
        return cls.from_mapping(json.loads(secret_string), f"secret {secret_id}")

    def to_dict(self) -> Dict[str, str]:
        return {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
            "token_uri": self.token_uri,
        }

    def credentials(self) -> Credentials:
        return Credentials(
            token=None,
            refresh_token=self.refresh_token,
            token_uri=self.token_uri,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=SCOPES,
        )


def load_authorized_user_secret(
    path: Union[str, Path] = DEFAULT_SECRET_FILE,
    environ: Optional[Mapping[str, str]] = None,
) -> AuthorizedUserSecret:
    """Environment variables first, then the JSON file at *path*."""
    try:
        return AuthorizedUserSecret.from_env(environ)
    except CredentialMissing as env_exc:
        try:
            return AuthorizedUserSecret.from_file(path)
        except CredentialMissing as file_exc:
            raise CredentialMissing(f"{env_exc.detail}; and {file_exc.detail}") from file_exc
