"""
Logging configuration.

Parlance modules log through `logging.getLogger(__name__)` and never configure
logging themselves. Hosts that want to see those records (prompt lifecycle,
dispatch outcomes, short-circuited runs) call setup_logging(), which routes
the "parlance" logger through rich's RichHandler.

    >>> from parlance.logs import setup_logging
    >>> setup_logging("DEBUG")
"""
import copy
import logging
import logging.config

DEFAULT_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "rich": {"format": "%(message)s", "datefmt": "[%X]"},
    },
    "handlers": {
        "rich": {
            "class": "rich.logging.RichHandler",
            "formatter": "rich",
            "rich_tracebacks": True,
            "markup": False,
            "show_path": False,
        },
    },
    "loggers": {
        "parlance": {
            "handlers": ["rich"],
            "level": "INFO",
            "propagate": False,
        },
    },
}


def _merge(base, overrides, /):
    for key, value in overrides.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def setup_logging(level="INFO", /, overrides=None):
    """
    Install the rich handler on the "parlance" logger.

    Parameters
    - level: str | int     level of the "parlance" logger.
    - overrides: dict      dictConfig fragments merged (depth first) over the
                           default configuration.
    """
    config = copy.deepcopy(DEFAULT_LOGGING_CONFIG)
    config["loggers"]["parlance"]["level"] = level.upper() if isinstance(level, str) else level
    if overrides:
        _merge(config, overrides)
    logging.config.dictConfig(config)
    return logging.getLogger("parlance")


__all__ = (
    "DEFAULT_LOGGING_CONFIG",
    "setup_logging",
)
