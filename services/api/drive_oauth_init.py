# One-time script: runs the OAuth consent flow and writes the Drive token
# used by DriveBlobStore (core/drive_client.py) to upload annotated drawings.
from __future__ import annotations

from google_auth_oauthlib.flow import InstalledAppFlow
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from core.drive_client import CLIENT_SECRET_FILE, SCOPES, TOKEN_FILE


def main():
    if not CLIENT_SECRET_FILE.exists():
        raise SystemExit(
            f"Missing {CLIENT_SECRET_FILE}. "
            "Put your downloaded OAuth client JSON there as drive_oauth_client.json"
        )

    creds = None
    if TOKEN_FILE.exists():
        creds = Credentials.from_authorized_user_file(str(TOKEN_FILE), SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            # Opens a browser on a local callback server
            flow = InstalledAppFlow.from_client_secrets_file(str(CLIENT_SECRET_FILE), SCOPES)
            creds = flow.run_local_server(port=0)

        TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
        TOKEN_FILE.write_text(creds.to_json())

    print(f"✅ Drive OAuth token saved to {TOKEN_FILE}")
    print("   Set BLOB_BACKEND=drive (or DRIVE_TOKEN_JSON in deployed envs) to use it.")


if __name__ == "__main__":
    main()
