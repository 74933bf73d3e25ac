import logging
import logging.handlers
from typing import Optional

LOGGER_NAME = "qcmap"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_file: Optional[str] = None,
    *,
    quiet: bool = False,
    debug: bool = False,
    max_bytes: int = 5_000_000,
) -> logging.Logger:
    """Configure and return the shared `qcmap` logger.

    No file is written unless `log_file` is given; the file rotates once it
    reaches `max_bytes`. With `debug` the per-trial line-search records are
    emitted as well.
    """
    logger = logging.getLogger(LOGGER_NAME)
    # Keep propagation enabled so pytest caplog can capture records even when
    # console output is suppressed.
    logger.propagate = True

    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=0
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as exc:
            print(f"[logging] Could not open log file '{log_file}': {exc}")

    if not quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
