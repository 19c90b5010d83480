import os
import logging
from dotenv import load_dotenv
from logging.handlers import RotatingFileHandler

load_dotenv("configs/.env")

LOG_DIRECTORY = os.getenv("LOG_DIRECTORY", "logs")
LOG_NAME = os.getenv("LOG_NAME", "splitledger.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", 10**8))
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() in ("1", "true", "yes")
_raw_log_level = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, _raw_log_level, logging.INFO)

_configured = False


def setup_logging(
    log_dir=LOG_DIRECTORY,
    log_level=LOG_LEVEL,
    log_file=LOG_NAME,
    max_bytes=LOG_MAX_BYTES,
    backup_count=5,
    to_file=LOG_TO_FILE,
):
    global _configured

    root_logger = logging.getLogger()
    if _configured:
        return root_logger

    log_format = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
    )

    if to_file:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, log_file), maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(log_format)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_format)
    console_handler.setLevel(log_level)

    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    _configured = True
    return root_logger


setup_logging()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
