# scan_station: webcam barcode / QR scan station
__version__ = "1.0.0"
