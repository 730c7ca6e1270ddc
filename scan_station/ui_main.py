import cv2
from PyQt5.QtWidgets import (
    QApplication, QWidget, QLabel, QVBoxLayout, QHBoxLayout, QFrame, QPushButton,
    QComboBox, QLineEdit, QTableWidget, QTableWidgetItem, QHeaderView, QDateEdit,
    QGroupBox, QFileDialog, QMessageBox,
)
from PyQt5.QtGui import QPixmap, QImage
from PyQt5.QtCore import Qt, QTimer, QDate

from .modules import camera_module, export_module, utils
from .modules.applog import get_logger
from .modules.errors import DeviceError, ScanStationError

PREVIEW_W, PREVIEW_H = 640, 480
BTN_START = "Bắt đầu"
BTN_STOP = "Dừng"
HISTORY_HEADERS = ["STT", "Kết quả", "Ngày quét", "Giờ quét"]
HISTORY_WEIGHTS = [10, 50, 20, 20]

MAIN_STYLE = """
QWidget { background-color: #f7f8fa; font-family: 'Segoe UI', Arial, Helvetica, sans-serif; color: #2c3e50; }
QFrame#Panel { background-color: #ffffff; border: 1px solid #e6e8eb; border-radius: 12px; }
QLabel { font-size: 11pt; color: #2c3e50; }
QLabel#Preview { background: black; border: 2px solid #333; color: #aaaaaa; }
QLineEdit#Result { font-size: 13pt; font-weight: bold; color: #e74c3c; }
QPushButton { padding: 6px 16px; }
"""

logger = get_logger("ui")


def frame_to_pixmap(frame_bgr):
    rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    h, w, ch = rgb.shape
    img = QImage(rgb.data, w, h, ch * w, QImage.Format_RGB888)
    return QPixmap.fromImage(img)


class MainWindow(QWidget):
    def __init__(self, coordinator, config):
        super().__init__()
        self.setWindowTitle("Webcam Barcode & QR Scanner")
        self.setGeometry(100, 100, 1200, 720)
        self.setStyleSheet(MAIN_STYLE)

        self.config = config
        self.coordinator = coordinator
        # side effects of a new scan run on this (UI) thread
        coordinator.show_text = self.show_result
        coordinator.copy_to_clipboard = self.copy_to_clipboard
        coordinator.play_sound = QApplication.beep
        coordinator.refresh_history = self.load_history

        self._build_ui()

        # --- Timers: preview refresh + decode attempts ---
        self.frame_timer = QTimer(self)
        self.frame_timer.timeout.connect(self.update_frame)
        self.scan_timer = QTimer(self)
        self.scan_timer.timeout.connect(self.scan_tick)

        self.load_history()
        self.init_cameras()

    # ---------- Layout ----------
    def _build_ui(self):
        body_layout = QHBoxLayout(self)
        body_layout.setContentsMargins(16, 16, 16, 16)
        body_layout.setSpacing(16)

        # Left: device bar + preview
        left_frame = QFrame()
        left_frame.setObjectName("Panel")
        left_layout = QVBoxLayout(left_frame)

        top_bar = QHBoxLayout()
        top_bar.addWidget(QLabel("Chọn Camera:"))
        self.cbo_devices = QComboBox()
        self.cbo_devices.setMinimumWidth(220)
        top_bar.addWidget(self.cbo_devices, 1)
        self.btn_start = QPushButton(BTN_START)
        self.btn_start.clicked.connect(self.toggle_camera)
        top_bar.addWidget(self.btn_start)
        left_layout.addLayout(top_bar)

        self.lbl_camera = QLabel("Camera")
        self.lbl_camera.setObjectName("Preview")
        self.lbl_camera.setFixedSize(PREVIEW_W, PREVIEW_H)
        self.lbl_camera.setAlignment(Qt.AlignCenter)
        left_layout.addWidget(self.lbl_camera, alignment=Qt.AlignCenter)
        left_layout.addStretch(1)

        # Right: last result, history, export
        right_frame = QFrame()
        right_frame.setObjectName("Panel")
        right_layout = QVBoxLayout(right_frame)

        right_layout.addWidget(QLabel("Kết quả quét gần nhất:"))
        self.txt_result = QLineEdit()
        self.txt_result.setObjectName("Result")
        self.txt_result.setReadOnly(True)
        right_layout.addWidget(self.txt_result)

        right_layout.addWidget(QLabel("Lịch sử quét:"))
        self.tbl_history = QTableWidget(0, len(HISTORY_HEADERS))
        self.tbl_history.setHorizontalHeaderLabels(HISTORY_HEADERS)
        self.tbl_history.setEditTriggers(QTableWidget.NoEditTriggers)
        self.tbl_history.setSelectionBehavior(QTableWidget.SelectRows)
        self.tbl_history.setAlternatingRowColors(True)
        self.tbl_history.verticalHeader().setVisible(False)
        self.tbl_history.horizontalHeader().setSectionResizeMode(QHeaderView.Interactive)
        self.tbl_history.horizontalHeader().setStretchLastSection(True)
        right_layout.addWidget(self.tbl_history, 1)

        export_group = QGroupBox("Xuất Báo Cáo")
        export_layout = QHBoxLayout(export_group)
        today = QDate.currentDate()
        export_layout.addWidget(QLabel("Từ:"))
        self.dtp_from = QDateEdit(today)
        export_layout.addWidget(self.dtp_from)
        export_layout.addWidget(QLabel("Đến:"))
        self.dtp_to = QDateEdit(today)
        export_layout.addWidget(self.dtp_to)
        for dtp in (self.dtp_from, self.dtp_to):
            dtp.setDisplayFormat("dd/MM/yyyy")
            dtp.setCalendarPopup(True)
        self.btn_export = QPushButton("Xuất Excel")
        self.btn_export.clicked.connect(self.export_excel)
        export_layout.addWidget(self.btn_export)
        right_layout.addWidget(export_group)

        body_layout.addWidget(left_frame)
        body_layout.addWidget(right_frame, 1)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._apply_column_weights()

    def _apply_column_weights(self):
        total = self.tbl_history.viewport().width()
        for col, weight in enumerate(HISTORY_WEIGHTS[:-1]):
            self.tbl_history.setColumnWidth(col, int(total * weight / sum(HISTORY_WEIGHTS)))

    # ---------- Camera ----------
    def init_cameras(self):
        devices = camera_module.list_cameras(self.config.max_probe)
        if not devices:
            QMessageBox.critical(self, "Lỗi", "Không tìm thấy webcam nào!")
            self.btn_start.setEnabled(False)
            return
        for idx, name in devices:
            self.cbo_devices.addItem(name, idx)
        self.cbo_devices.setCurrentIndex(0)

    def toggle_camera(self):
        if self.coordinator.is_running:
            self.stop_camera()
        else:
            self.start_camera()

    def start_camera(self):
        idx = self.cbo_devices.currentData()
        if idx is None:
            return
        try:
            self.coordinator.start(idx)
        except DeviceError as e:
            logger.error(f"[Cam] start failed: {e}")
            QMessageBox.critical(self, "Lỗi", f"Lỗi khi khởi động camera: {e}")
            self.coordinator.stop()
            return
        self.frame_timer.start(self.config.frame_interval_ms)
        self.scan_timer.start(self.config.scan_interval_ms)
        self.btn_start.setText(BTN_STOP)
        self.cbo_devices.setEnabled(False)

    def stop_camera(self):
        self.scan_timer.stop()
        self.frame_timer.stop()
        self.coordinator.stop()
        self.lbl_camera.clear()
        self.lbl_camera.setText("Camera")
        self.btn_start.setText(BTN_START)
        self.cbo_devices.setEnabled(True)

    def update_frame(self):
        if self.coordinator.capture_failed:
            self.stop_camera()
            QMessageBox.critical(self, "Lỗi", "Camera không phản hồi, đã dừng quét.")
            return
        frame = self.coordinator.next_display_frame()
        if frame is None:
            return
        pix = frame_to_pixmap(frame)
        self.lbl_camera.setPixmap(pix.scaled(PREVIEW_W, PREVIEW_H, Qt.KeepAspectRatio))

    def scan_tick(self):
        try:
            self.coordinator.scan_current_frame()
        except ScanStationError as e:
            # history write failed; pause decoding while the notice is open
            logger.error(f"[Scan] could not save result: {e}")
            self.scan_timer.stop()
            QMessageBox.critical(self, "Lỗi", f"Không lưu được kết quả quét: {e}")
            if self.coordinator.is_running:
                self.scan_timer.start(self.config.scan_interval_ms)

    # ---------- Scan side effects ----------
    def show_result(self, text):
        self.txt_result.setText(text)

    def copy_to_clipboard(self, text):
        QApplication.clipboard().setText(text)

    def load_history(self):
        try:
            records = self.coordinator.history()
        except ScanStationError as e:
            logger.error(f"[DB] history load failed: {e}")
            QMessageBox.critical(self, "Lỗi", f"Không đọc được lịch sử quét: {e}")
            return
        self.tbl_history.setRowCount(len(records))
        for row, rec in enumerate(records):
            for col, value in enumerate((rec.id, rec.result, rec.scan_date, rec.scan_time)):
                self.tbl_history.setItem(row, col, QTableWidgetItem(str(value)))
        self._apply_column_weights()

    # ---------- Export ----------
    def export_excel(self):
        from_date = self.dtp_from.date().toString("yyyy-MM-dd")
        to_date = self.dtp_to.date().toString("yyyy-MM-dd")
        try:
            df = export_module.load_export_frame(self.coordinator.store, from_date, to_date)
            if df.empty:
                QMessageBox.information(self, "Thông báo",
                                        "Không có dữ liệu để xuất trong khoảng thời gian đã chọn.")
                return

            path, _ = QFileDialog.getSaveFileName(
                self, "Xuất Excel", utils.timestamp_name("LichSuQuet", "xlsx"), "Excel Workbook (*.xlsx)"
            )
            if not path:
                return
            export_module.write_workbook(df, path, self.config.sheet_name)
            QMessageBox.information(self, "Thành công", "Xuất file Excel thành công!")
        except ScanStationError as e:
            QMessageBox.critical(self, "Lỗi", f"Đã xảy ra lỗi khi xuất file: {e}")

    def closeEvent(self, event):
        self.scan_timer.stop()
        self.frame_timer.stop()
        self.coordinator.shutdown()
        super().closeEvent(event)
