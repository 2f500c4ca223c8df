"""
Configuration Settings for the SocialAT PDS Client

This module centralizes all configuration settings for the client,
including the remote server address, credentials and request tuning.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        # -1 fails the bounds check in validate_settings()
        return -1


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return -1.0


# =============================================================================
# Remote Server (PDS)
# =============================================================================

DEFAULT_PDS_SERVER = "https://bsky.social"
PDS_SERVER = os.getenv("PDS_SERVER") or DEFAULT_PDS_SERVER

# Account Authentication
PDS_HANDLE = os.getenv("PDS_HANDLE")
PDS_PASSWORD = os.getenv("PDS_PASSWORD")

# Administrative token, used for invite code issuance
PDS_ADMIN_TOKEN = os.getenv("PDS_ADMIN_TOKEN")

# =============================================================================
# Request Settings
# =============================================================================

REQUEST_TIMEOUT = _get_float("REQUEST_TIMEOUT", 10.0)      # Seconds timeout for attachment fetches
UPLOAD_MAX_WORKERS = _get_int("UPLOAD_MAX_WORKERS", 4)      # Parallel attachment fetches per upload_many call
USER_AGENT = 'socialat-client/1.0'
REQUEST_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'image/*,*/*;q=0.8',
}

# =============================================================================
# Feed and Post Settings
# =============================================================================

TIMELINE_FETCH_LIMIT = _get_int("TIMELINE_FETCH_LIMIT", 50)  # Default number of timeline posts to fetch
TIMELINE_ALGORITHM = "reverse-chronological"
POST_COLLECTION = "app.bsky.feed.post"
INVITE_CODE_USE_COUNT = 1
EMBED_DESCRIPTION_LENGTH = 100                                # Max length for a generated embed description

# Raise BuildError instead of silently dropping images when the image count
# does not match the number of uploaded blobs
STRICT_EMBED_COUNTS = _get_bool("STRICT_EMBED_COUNTS", False)

# =============================================================================
# Logging
# =============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
