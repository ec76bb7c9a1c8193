import logging
import logging.config
import os

from app.config import settings


def build_logging_config(level: str = "INFO", log_file: str | None = None) -> dict:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": level,
        },
    }
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": log_file,
            "formatter": "standard",
            "level": level,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
        },
        "handlers": handlers,
        "loggers": {
            "app": {
                "handlers": list(handlers),
                "level": level,
                "propagate": False,
            },
        },
    }


def setup_logging():
    logging.config.dictConfig(build_logging_config(settings.LOG_LEVEL.upper(), settings.LOG_FILE))
