# modules/utils.py
import os, sys, time

APP_FOLDER = "BarcodeScannerApp"


def ensure_dir(path):
    os.makedirs(path, exist_ok=True)
    return path


def timestamp_name(prefix="file", ext="jpg"):
    return f"{prefix}_{time.strftime('%Y%m%d_%H%M%S')}.{ext}"


def app_data_dir(app_folder=APP_FOLDER):
    """Per-user data folder: %LOCALAPPDATA% on Windows, XDG data home elsewhere."""
    if sys.platform.startswith("win"):
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~\\AppData\\Local")
    else:
        base = os.environ.get("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
    return os.path.join(base, app_folder)
