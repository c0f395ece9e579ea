# ledgerbench/logging_config.py
import logging
import os
import sys

from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"

# Libraries that are chatty at INFO while a round is running
NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    use_rich: bool = False,
) -> logging.Logger:
    """
    Configure the root logger for a benchmark run.

    The level falls back to LEDGERBENCH_LOG_LEVEL, then INFO. Records go to
    stdout (or a rich console handler when ``use_rich`` is set, which plays
    well with the round progress bar) and optionally to ``log_file``.
    """
    level = (level or os.getenv("LEDGERBENCH_LOG_LEVEL", "INFO")).upper()
    logger = logging.getLogger()
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if use_rich:
        console_handler: logging.Handler = RichHandler(
            show_path=False, rich_tracebacks=True, markup=False
        )
        console_handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {log_file}")

    if logger.level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception

    return logger
