# modules/config_module.py
import os
import configparser
from dataclasses import dataclass, field
from typing import Optional

import pytz

from .applog import get_logger
from .errors import ConfigError
from .utils import app_data_dir

CONFIG_FILE = "config.ini"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AppConfig:
    # [Camera]
    max_probe: int = 5
    width: int = 640
    height: int = 480
    frame_interval_ms: int = 30
    max_read_failures: int = 10
    # [Scanner]
    scan_interval_ms: int = 500
    try_harder: bool = True
    # [Storage]
    data_dir: str = field(default_factory=app_data_dir)
    db_name: str = "ScanHistory.sqlite"
    timezone: Optional[str] = None
    # [Export]
    sheet_name: str = "LichSuQuet"
    # [Log]
    log_level: str = "INFO"
    log_dir: str = "logs"

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, self.db_name)

    def tzinfo(self):
        """pytz zone for scan timestamps, None means local wall-clock time."""
        if not self.timezone:
            return None
        return pytz.timezone(self.timezone)


def _getint(config, section, key, default, minimum=1):
    try:
        value = config.getint(section, key, fallback=default)
    except ValueError as e:
        raise ConfigError(f"[{section}] {key}: {e}") from e
    if value < minimum:
        raise ConfigError(f"[{section}] {key} must be >= {minimum}, got {value}")
    return value


def load_config(path: str = CONFIG_FILE) -> AppConfig:
    """
    Read config.ini. A missing file or section keeps the defaults,
    a malformed value raises ConfigError.
    """
    cfg = AppConfig()
    config = configparser.ConfigParser(inline_comment_prefixes=(";", "#"))
    try:
        config.read(path, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(f"Configure file error: {e}") from e

    cfg.max_probe = _getint(config, "Camera", "MaxProbe", cfg.max_probe)
    cfg.width = _getint(config, "Camera", "Width", cfg.width)
    cfg.height = _getint(config, "Camera", "Height", cfg.height)
    cfg.frame_interval_ms = _getint(config, "Camera", "FrameIntervalMs", cfg.frame_interval_ms)
    cfg.max_read_failures = _getint(config, "Camera", "MaxReadFailures", cfg.max_read_failures)

    cfg.scan_interval_ms = _getint(config, "Scanner", "ScanIntervalMs", cfg.scan_interval_ms)
    try:
        cfg.try_harder = config.getboolean("Scanner", "TryHarder", fallback=cfg.try_harder)
    except ValueError as e:
        raise ConfigError(f"[Scanner] TryHarder: {e}") from e

    cfg.data_dir = config.get("Storage", "DataDir", fallback="").strip() or cfg.data_dir
    cfg.db_name = config.get("Storage", "DbName", fallback="").strip() or cfg.db_name
    cfg.timezone = config.get("Storage", "Timezone", fallback="").strip() or None
    if cfg.timezone:
        try:
            pytz.timezone(cfg.timezone)
        except pytz.UnknownTimeZoneError as e:
            raise ConfigError(f"[Storage] Timezone: unknown zone {cfg.timezone!r}") from e

    cfg.sheet_name = config.get("Export", "SheetName", fallback="").strip() or cfg.sheet_name

    cfg.log_level = config.get("Log", "Level", fallback=cfg.log_level).strip().upper()
    if cfg.log_level not in LOG_LEVELS:
        raise ConfigError(f"[Log] Level: unknown level {cfg.log_level!r}")
    cfg.log_dir = config.get("Log", "Dir", fallback=cfg.log_dir).strip()

    get_logger("config").debug(f"config loaded from {path}: {cfg}")
    return cfg
