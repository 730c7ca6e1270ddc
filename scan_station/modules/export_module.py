# modules/export_module.py
import os
import tempfile

import pandas as pd
from openpyxl.utils import get_column_letter

from .applog import get_logger
from .errors import ExportError

COLUMN_LABELS = {
    "Result": "Kết quả",
    "ScanDate": "Ngày quét",
    "ScanTime": "Giờ quét",
}
DEFAULT_SHEET = "LichSuQuet"

logger = get_logger("export")


def load_export_frame(store, from_date, to_date) -> pd.DataFrame:
    """Scans dated within [from_date, to_date], oldest first, with presentation headers."""
    records = store.fetch_between(from_date, to_date)
    df = pd.DataFrame(
        [(r.result, r.scan_date, r.scan_time) for r in records],
        columns=list(COLUMN_LABELS),
    )
    return df.rename(columns=COLUMN_LABELS)


def _autofit(worksheet, df):
    for col_idx, name in enumerate(df.columns, start=1):
        values = [str(name)] + [str(v) for v in df.iloc[:, col_idx - 1]]
        width = max(len(v) for v in values) + 2
        worksheet.column_dimensions[get_column_letter(col_idx)].width = min(width, 100)


def write_workbook(df: pd.DataFrame, path: str, sheet_name: str = DEFAULT_SHEET) -> str:
    """
    Write df to a single-sheet .xlsx at path and return the final path.
    The workbook is built in a temp file next to the target and moved into place,
    so a failed write never leaves a half-written file behind.
    """
    if not path.lower().endswith(".xlsx"):
        path += ".xlsx"
    folder = os.path.dirname(os.path.abspath(path))

    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(suffix=".xlsx", dir=folder)
        os.close(fd)
        with pd.ExcelWriter(tmp_path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            _autofit(writer.sheets[sheet_name], df)
        os.replace(tmp_path, path)
    except Exception as e:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        logger.error(f"[Export] write failed: {e}")
        raise ExportError(str(e)) from e

    logger.info(f"[Export] {len(df)} rows -> {path}")
    return path
