import logging
import os
from pathlib import Path
from typing import Optional, Union

LOG_DIR = Path(
    os.getenv("SENTINEL_LOG_DIR", Path(__file__).resolve().parents[1] / "logs")
)

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(
    name: str,
    log_file: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Return a logger writing to stderr and optionally ``log_file``.

    Handlers are only attached once per logger so repeated imports do not
    duplicate output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(_FORMAT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Root handlers configured by the CLI would otherwise print twice
    logger.propagate = False
    return logger
