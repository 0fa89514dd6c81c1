"""
DevMob Onboarding Bot - Core Package
====================================

Configuration, logging, error types, persistence and the health server.

DESIGN:
    - get_config() returns the same Config instance
    - logger is a global TreeLogger instance

Server: the DevMob
"""

# =============================================================================
# Core Imports
# =============================================================================

from .config import (
    Config,
    ConfigValidationError,
    EmbedColors,
    get_config,
    load_config,
)

from .errors import (
    OnboardingError,
    ProviderError,
    EmptyCompletionError,
    PersistenceError,
    SessionAlreadyActive,
    InvalidSessionTransition,
)

from .logger import logger, TreeLogger


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    # Config
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "get_config",
    "load_config",
    # Errors
    "OnboardingError",
    "ProviderError",
    "EmptyCompletionError",
    "PersistenceError",
    "SessionAlreadyActive",
    "InvalidSessionTransition",
    # Logger
    "logger",
    "TreeLogger",
]
