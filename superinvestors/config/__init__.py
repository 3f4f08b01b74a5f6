# Superinvestors Configuration Module

from superinvestors.config.logging import (
    BusinessLogger,
    LogContext,
    business_logger,
    configure_logging,
    log_performance,
)
from superinvestors.config.settings import (
    EngineSettings,
    clear_settings_cache,
    get_engine_settings,
    load_settings,
)

__all__ = [
    # Settings
    "EngineSettings",
    "get_engine_settings",
    "clear_settings_cache",
    "load_settings",
    # Logging
    "configure_logging",
    "LogContext",
    "log_performance",
    "BusinessLogger",
    "business_logger",
]
