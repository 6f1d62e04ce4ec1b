"""Process-wide logging setup."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # Statement echo is too chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
