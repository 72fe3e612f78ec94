import logging.config


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single console handler."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                # SQL echo is controlled by the engine, not the log level.
                "sqlalchemy.engine": {"level": "WARNING"},
                "uvicorn.access": {"level": "WARNING"},
            },
        }
    )
