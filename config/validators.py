"""
Configuration Validation for the SocialAT PDS Client

This module contains configuration validation logic.
Kept apart from settings.py so that importing settings never raises.
"""

import logging

from utils.exceptions import ConfigurationError
from utils.helpers import is_valid_url, domain_of

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def validate_settings(require_credentials: bool = False):
    """
    Validate that all required settings are properly configured.

    Args:
        require_credentials: If True, the account handle and password must be set.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings

    errors = []
    logger = logging.getLogger(__name__)

    # Server address
    if not is_valid_url(settings.PDS_SERVER) or not settings.PDS_SERVER.startswith(("http://", "https://")):
        errors.append(f"PDS_SERVER must be an http(s) URL, got {settings.PDS_SERVER!r}")
    elif not domain_of(settings.PDS_SERVER):
        errors.append(f"PDS_SERVER has no host name: {settings.PDS_SERVER!r}")

    # Account credentials
    if require_credentials:
        required_vars = [
            ("PDS_HANDLE", settings.PDS_HANDLE),
            ("PDS_PASSWORD", settings.PDS_PASSWORD),
        ]
        for var_name, var_value in required_vars:
            if not var_value:
                errors.append(f"Missing required environment variable: {var_name}")

    if not settings.PDS_ADMIN_TOKEN:
        logger.debug("PDS_ADMIN_TOKEN is not set; invite codes cannot be issued")

    # Validate numeric settings are within reasonable bounds
    numeric_validations = [
        ("UPLOAD_MAX_WORKERS", settings.UPLOAD_MAX_WORKERS, 1, 32),
        ("TIMELINE_FETCH_LIMIT", settings.TIMELINE_FETCH_LIMIT, 1, 100),
    ]

    for name, value, min_val, max_val in numeric_validations:
        if value < min_val or value > max_val:
            errors.append(f"{name} must be between {min_val} and {max_val}, got {value}")

    # Validate timeout values are positive
    if settings.REQUEST_TIMEOUT <= 0:
        errors.append(f"REQUEST_TIMEOUT must be positive, got {settings.REQUEST_TIMEOUT}")

    if settings.LOG_LEVEL not in VALID_LOG_LEVELS:
        errors.append(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}, got {settings.LOG_LEVEL}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return True


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    # Import settings here to avoid circular imports
    from config import settings

    return {
        "server": {
            "address": settings.PDS_SERVER,
            "domain": domain_of(settings.PDS_SERVER),
        },
        "credentials": {
            "handle": settings.PDS_HANDLE,
            "password_configured": bool(settings.PDS_PASSWORD),
            "admin_token_configured": bool(settings.PDS_ADMIN_TOKEN),
        },
        "requests": {
            "timeout": settings.REQUEST_TIMEOUT,
            "upload_max_workers": settings.UPLOAD_MAX_WORKERS,
        },
        "posts": {
            "timeline_fetch_limit": settings.TIMELINE_FETCH_LIMIT,
            "strict_embed_counts": settings.STRICT_EMBED_COUNTS,
        },
    }
