# modules/applog.py
import os, logging

LOGGER_NAME = "scan_station"
LOG_FILE = "scan_station.log"
LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(log_dir: str = "logs", level: str = "INFO") -> logging.Logger:
    """
    Console + file logger for the whole station.
    Safe to call more than once: handlers are only attached the first time.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # avoid stacking handlers on re-import / second window
    if logger.handlers:
        return logger

    fmt = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(os.path.join(log_dir, LOG_FILE), encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)
    return logger


def get_logger(module: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{module}")
