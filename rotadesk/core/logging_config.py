import logging
import logging.config

from rotadesk.core.config import settings


def setup_logging() -> None:
    """Configure console logging for the API process."""
    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.LOG_LEVEL,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {
                "level": settings.LOG_LEVEL,
                "handlers": ["console"],
            },
            "sqlalchemy.engine": {
                "level": "WARNING",  # query noise
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)
    logging.getLogger(__name__).info(f"Logging configured at level {settings.LOG_LEVEL}")
