"""Logging setup for the service.

Modules log through ``logging.getLogger(__name__)``; this module only wires
handlers and levels once, at application startup.
"""

from logging import getLogger
from logging.config import dictConfig, fileConfig

DEFAULT_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {"handlers": ["console"], "level": "INFO"},
}


class LoggingConfigurator:
    """Configure stdlib logging from an ini file or the built-in defaults."""

    @classmethod
    def configure(cls, logging_config_path: str | None = None, log_level: str | None = None) -> None:
        """Configure logging.

        Args:
            logging_config_path: Optional ``fileConfig`` ini path. Defaults to
                the built-in console configuration.
            log_level: Optional root level override (e.g. "DEBUG").
        """
        if logging_config_path is not None:
            fileConfig(logging_config_path, disable_existing_loggers=False)
        else:
            dictConfig(DEFAULT_LOGGING_CONFIG)

        if log_level:
            getLogger().setLevel(log_level.upper())
