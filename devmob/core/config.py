"""
DevMob Onboarding Bot - Configuration Module
============================================

Centralized configuration management with environment variable validation.

DESIGN:
    A single source of truth for every setting, loaded from environment
    variables at startup into a dataclass. Services receive the Config
    object through their constructor rather than reading the environment
    themselves, so tests can build one by hand.

    Key patterns:
    - Singleton via get_config() ensures one Config instance
    - Only the gateway token is required; everything else degrades
    - Numeric settings are clamped with a warning instead of failing

Server: the DevMob
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from devmob.core.constants import (
    AI_MODEL_DEFAULT,
    ANSWER_POLL_INTERVAL_DEFAULT,
    DEFAULT_HTTP_PORT,
    INTERVIEW_TIMEOUT_DEFAULT,
    INTERVIEW_TIMEOUT_MAX,
    INTERVIEW_TIMEOUT_MIN,
    STORY_SCAN_LIMIT_DEFAULT,
)


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Bot configuration loaded from environment variables.

    Attributes:
        discord_token: Gateway authentication token.
        openai_api_key: Provider API key; None means placeholder stories.
        story_channel_id: Channel where biographies are announced.
        join_channel_id: Interview-entry channel; None disables onboarding.
        log_channel_id: Channel receiving error reports.
        associate_role_id: Role granted after a completed interview.
        outsider_role_id: Role held by members who have not finished.
        owner_id: User allowed to run operator commands.
    """

    # -------------------------------------------------------------------------
    # Required: Discord
    # -------------------------------------------------------------------------

    discord_token: str

    # -------------------------------------------------------------------------
    # Optional: Provider
    # -------------------------------------------------------------------------

    openai_api_key: Optional[str] = None
    ai_model: str = AI_MODEL_DEFAULT

    # -------------------------------------------------------------------------
    # Optional: Channels
    # -------------------------------------------------------------------------

    story_channel_id: Optional[int] = None
    join_channel_id: Optional[int] = None
    log_channel_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Optional: Roles
    # -------------------------------------------------------------------------

    associate_role_id: Optional[int] = None
    outsider_role_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Optional: Permissions
    # -------------------------------------------------------------------------

    owner_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Optional: Interview
    # -------------------------------------------------------------------------

    interview_timeout: int = INTERVIEW_TIMEOUT_DEFAULT
    answer_poll_interval: float = ANSWER_POLL_INTERVAL_DEFAULT
    answer_freshness: Optional[float] = None  # Reject answers older than this

    # -------------------------------------------------------------------------
    # Optional: Membership
    # -------------------------------------------------------------------------

    story_scan_limit: int = STORY_SCAN_LIMIT_DEFAULT
    invite_fallback: bool = False

    # -------------------------------------------------------------------------
    # Optional: Runtime
    # -------------------------------------------------------------------------

    http_port: int = DEFAULT_HTTP_PORT
    data_dir: Path = Path("data")
    error_webhook_url: Optional[str] = None

    @property
    def onboarding_enabled(self) -> bool:
        return self.join_channel_id is not None


# =============================================================================
# Embed Colors
# =============================================================================

class EmbedColors:
    """
    Standardized color palette for Discord embeds.

    Story announcements use GREEN when an inviter was found, ORANGE when
    the member arrived without one.
    """

    GREEN = 0x1F5E2E    # #1F5E2E - Invited members, success
    GOLD = 0xE6B84A     # #E6B84A - Interview prompts
    ORANGE = 0xFF9800   # #FF9800 - Uninvited members, warnings
    RED = 0xDC3545      # #DC3545 - Errors in the audit channel
    BLUE = 0x3498DB     # #3498DB - Informational

    SUCCESS = GREEN
    WARNING = ORANGE
    INFO = BLUE
    ERROR = RED


# =============================================================================
# Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


def _parse_int_optional(value: Optional[str]) -> Optional[int]:
    """
    Parse optional string to integer, returning None on failure.

    Args:
        value: String value from environment variable, may be None.

    Returns:
        Parsed integer or None if parsing fails.
    """
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_int_with_default(value: Optional[str], default: int, name: str, min_val: int = None, max_val: int = None) -> int:
    """
    Parse optional integer with default and range validation.

    Args:
        value: String value from environment variable.
        default: Default value if not set or invalid.
        name: Variable name for warning messages.
        min_val: Minimum allowed value (inclusive).
        max_val: Maximum allowed value (inclusive).

    Returns:
        Parsed integer within valid range, or default.
    """
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        from devmob.core.logger import logger
        logger.warning(f"Config {name}='{value}' invalid, using default {default}")
        return default
    if min_val is not None and parsed < min_val:
        from devmob.core.logger import logger
        logger.warning(f"Config {name}={parsed} below min {min_val}, using {min_val}")
        return min_val
    if max_val is not None and parsed > max_val:
        from devmob.core.logger import logger
        logger.warning(f"Config {name}={parsed} above max {max_val}, using {max_val}")
        return max_val
    return parsed


def _parse_float_optional(value: Optional[str], name: str, min_val: float = 0.0) -> Optional[float]:
    """Parse a positive float, None when unset or invalid."""
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError:
        from devmob.core.logger import logger
        logger.warning(f"Config {name}='{value}' invalid, ignoring")
        return None
    if parsed <= min_val:
        from devmob.core.logger import logger
        logger.warning(f"Config {name}={parsed} must be above {min_val}, ignoring")
        return None
    return parsed


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _validate_url(value: Optional[str], name: str) -> Optional[str]:
    """
    Validate URL format for webhooks.

    Args:
        value: URL string to validate.
        name: Variable name for warning messages.

    Returns:
        URL if valid, None if invalid or empty.
    """
    if not value:
        return None
    if not value.startswith(("https://", "http://")):
        from devmob.core.logger import logger
        logger.warning(f"Config {name} invalid URL format, ignoring")
        return None
    return value


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Returns:
        Validated Config object with all settings.

    Raises:
        ConfigValidationError: If DISCORD_TOKEN is missing.
    """
    discord_token = os.getenv("DISCORD_TOKEN")
    if not discord_token:
        raise ConfigValidationError("Missing required environment variables: DISCORD_TOKEN")

    answer_poll_interval = _parse_float_optional(
        os.getenv("ANSWER_POLL_INTERVAL"), "ANSWER_POLL_INTERVAL"
    )

    return Config(
        discord_token=discord_token,
        openai_api_key=os.getenv("OPENAI_API_KEY") or os.getenv("OPENAI_KEY") or None,
        ai_model=os.getenv("AI_MODEL", AI_MODEL_DEFAULT),
        story_channel_id=_parse_int_optional(os.getenv("STORY_CHANNEL_ID")),
        join_channel_id=_parse_int_optional(os.getenv("JOIN_CHANNEL_ID")),
        log_channel_id=_parse_int_optional(os.getenv("LOG_CHANNEL_ID")),
        associate_role_id=_parse_int_optional(os.getenv("ASSOCIATE_ROLE_ID")),
        outsider_role_id=_parse_int_optional(os.getenv("OUTSIDER_ROLE_ID")),
        owner_id=_parse_int_optional(os.getenv("OWNER_ID")),
        interview_timeout=_parse_int_with_default(
            os.getenv("INTERVIEW_TIMEOUT_SECONDS"), INTERVIEW_TIMEOUT_DEFAULT, "INTERVIEW_TIMEOUT_SECONDS",
            min_val=INTERVIEW_TIMEOUT_MIN, max_val=INTERVIEW_TIMEOUT_MAX,
        ),
        answer_poll_interval=answer_poll_interval or ANSWER_POLL_INTERVAL_DEFAULT,
        answer_freshness=_parse_float_optional(
            os.getenv("ANSWER_FRESHNESS_SECONDS"), "ANSWER_FRESHNESS_SECONDS"
        ),
        story_scan_limit=_parse_int_with_default(
            os.getenv("STORY_SCAN_LIMIT"), STORY_SCAN_LIMIT_DEFAULT, "STORY_SCAN_LIMIT", min_val=10, max_val=1000
        ),
        invite_fallback=_parse_bool(os.getenv("INVITE_FALLBACK")),
        http_port=_parse_int_with_default(
            os.getenv("PORT"), DEFAULT_HTTP_PORT, "PORT", min_val=1, max_val=65535
        ),
        data_dir=Path(os.getenv("DATA_DIR", "data")),
        error_webhook_url=_validate_url(os.getenv("ERROR_WEBHOOK_URL"), "ERROR_WEBHOOK_URL"),
    )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, loading if needed.

    Raises:
        ConfigValidationError: On first call if config is invalid.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


# =============================================================================
# Config Validation & Logging
# =============================================================================

def validate_and_log_config() -> Config:
    """
    Validate configuration and log a summary at startup.

    Missing optional settings are logged so an operator can see which
    features are off without reading the code.

    Raises:
        ConfigValidationError: If required configuration is missing.
    """
    from devmob.core.logger import logger

    config = get_config()

    optional = [
        ("OPENAI_API_KEY", config.openai_api_key),
        ("STORY_CHANNEL_ID", config.story_channel_id),
        ("LOG_CHANNEL_ID", config.log_channel_id),
        ("ASSOCIATE_ROLE_ID", config.associate_role_id),
        ("OUTSIDER_ROLE_ID", config.outsider_role_id),
        ("OWNER_ID", config.owner_id),
    ]
    for name, value in optional:
        if not value:
            logger.info(f"Optional config not set: {name}")

    if not config.onboarding_enabled:
        logger.warning("JOIN_CHANNEL_ID not set, interview onboarding is disabled")

    logger.tree("Configuration Validated", [
        ("Required", "✅ All required variables set"),
        ("Onboarding", "Enabled" if config.onboarding_enabled else "Disabled"),
        ("Story Generation", "Enabled" if config.openai_api_key else "Placeholder only"),
        ("AI Model", config.ai_model),
        ("Answer Timeout", f"{config.interview_timeout}s"),
        ("Invite Fallback", "On" if config.invite_fallback else "Off"),
        ("Data Dir", str(config.data_dir)),
    ], emoji="⚙️")

    return config


# =============================================================================
# Permission Helpers
# =============================================================================

def has_operator_access(user, config: Config) -> bool:
    """
    Check if a user may run operator commands.

    The configured owner always may; otherwise the member needs the
    Administrator permission in the guild.
    """
    if user is None:
        return False
    if config.owner_id is not None and user.id == config.owner_id:
        return True
    permissions = getattr(user, "guild_permissions", None)
    return bool(permissions and permissions.administrator)


__all__ = [
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "load_config",
    "get_config",
    "validate_and_log_config",
    "has_operator_access",
]
