from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List, Optional

from google_auth_oauthlib.flow import InstalledAppFlow

from .config import DEFAULT_SECRET_FILE, SCOPES, AuthorizedUserSecret


def retrieve_secret(client_secrets: Path, port: int = 0) -> AuthorizedUserSecret:
    """Run the browser consent flow and return refresh-token credentials."""
    flow = InstalledAppFlow.from_client_secrets_file(str(client_secrets), scopes=SCOPES)
    creds = flow.run_local_server(port=port, access_type="offline", prompt="consent")
    return AuthorizedUserSecret.from_mapping(json.loads(creds.to_json()), "OAuth flow")


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="retrieve-google-tokens",
        description="Obtain a Drive refresh token and save it for back-up-drive-folder.",
    )
    parser.add_argument("client_secrets", help="OAuth client JSON downloaded from the Google console")
    parser.add_argument(
        "token_out",
        nargs="?",
        default=str(DEFAULT_SECRET_FILE),
        help="Where to write the authorized-user JSON (default: %(default)s)",
    )
    parser.add_argument("--port", type=int, default=0, help="Local redirect port (default: any free port)")
    args = parser.parse_args(argv)

    client_path = Path(args.client_secrets)
    if not client_path.exists():
        raise SystemExit(f"Missing {client_path}. Put your downloaded OAuth JSON there.")

    secret = retrieve_secret(client_path, port=args.port)

    out_path = Path(args.token_out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(secret.to_dict(), indent=2) + "\n", encoding="utf-8")
    print(f"Saved refresh token to {out_path}")


if __name__ == "__main__":
    main()
