import logging
import sys

LOGGER_NAME = "chatapp"

CONSOLE_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(log_file: str = "chatapp.log", level: int = logging.DEBUG, stream=None) -> logging.Logger:
    """
    Route the app's logger to the console and to `log_file` (appended).

    Safe to call more than once: handlers from an earlier call are closed and
    replaced. If the log file cannot be opened the console handler still works.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)

    console = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    try:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed to create FileHandler: {e}")
    else:
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger
