import os, sys
from functools import partial

# OpenCV wheels ship their own Qt plugin path; let PyQt5 use its own
os.environ.pop("QT_QPA_PLATFORM_PLUGIN_PATH", None)

from PyQt5.QtWidgets import QApplication, QMessageBox

from .modules.applog import setup_logger
from .modules.config_module import CONFIG_FILE, load_config
from .modules.db_module import ScanStore
from .modules.decode_module import decode_frame
from .modules.errors import ConfigError, StorageError
from .modules.scan_coordinator import ScanCoordinator
from .ui_main import MainWindow


def build_coordinator(config):
    store = ScanStore(config.db_path, tz=config.tzinfo())
    store.initialize()
    return ScanCoordinator(
        store,
        decoder=partial(decode_frame, try_harder=config.try_harder),
        width=config.width,
        height=config.height,
        max_read_failures=config.max_read_failures,
    )


def main(argv=None):
    argv = sys.argv if argv is None else argv
    config_path = os.environ.get("SCAN_STATION_CONFIG", CONFIG_FILE)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        # no log dir from config yet; console only
        setup_logger("", "INFO").error(f"Configure file error: {e}")
        raise SystemExit(1)

    logger = setup_logger(config.log_dir, config.log_level)
    app = QApplication(argv)

    try:
        coordinator = build_coordinator(config)
    except StorageError as e:
        logger.error(f"[DB] cannot initialise {config.db_path}: {e}")
        QMessageBox.critical(None, "Lỗi", f"Không mở được cơ sở dữ liệu: {e}")
        raise SystemExit(1)

    win = MainWindow(coordinator, config)
    win.show()
    logger.info("Scan station started")
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
