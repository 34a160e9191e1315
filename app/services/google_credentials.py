"""
Google service account credentials shared by the Sheets and Drive services
"""
import json
from google.oauth2.service_account import Credentials
from app.config import settings

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


def load_credentials(raw: str | None = None, scopes: list[str] | None = None) -> Credentials:
    """
    Load service account credentials.

    Args:
        raw: Path to a key file or the key JSON itself
             (defaults to GOOGLE_SERVICE_ACCOUNT_CREDENTIALS)
        scopes: OAuth scopes to request

    Returns:
        google.oauth2 service account Credentials
    """
    raw = raw if raw is not None else settings.google_service_account_credentials
    if not raw:
        raise ValueError("GOOGLE_SERVICE_ACCOUNT_CREDENTIALS not set")

    # Load credentials from file path or JSON string
    try:
        with open(raw, "r") as f:
            creds_dict = json.load(f)
    except (FileNotFoundError, OSError, json.JSONDecodeError):
        # Try parsing as JSON string
        try:
            creds_dict = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid service account credentials: {e}") from e

    return Credentials.from_service_account_info(creds_dict, scopes=scopes or SCOPES)
