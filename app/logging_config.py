import logging
import logging.config


def setup_logging(
    level: str = "INFO",
    access_log: bool = True,
    sql_echo: bool = False,
) -> None:
    """Configure root, uvicorn and SQLAlchemy loggers in one place.

    SQL statement logging goes through the ``sqlalchemy.engine`` logger
    instead of ``create_async_engine(echo=...)`` so it shares the console
    format with application logs.
    """
    level = level.upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                        "datefmt": "%H:%M:%S"},
            # uvicorn access lines arrive pre-formatted
            "access_simple": {"format": "%(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
            "access": {"class": "logging.StreamHandler", "formatter": "access_simple"},
        },
        "loggers": {
            "app": {"level": level},
            "sqlalchemy.engine": {"level": ("INFO" if sql_echo else "WARNING")},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": ("INFO" if access_log else "WARNING"),
                               "handlers": ["access"], "propagate": False},
        },
        "root": {"level": level, "handlers": ["console"]},
    })
