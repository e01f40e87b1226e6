from typing import Optional


class BarcodeScannerError(Exception):
	"""Base class for every error raised by pdf_barcodes."""


# Input errors (400)

class InvalidEventError(BarcodeScannerError):
	pass


class InvalidDocumentError(BarcodeScannerError):
	pass


# Source / extraction errors (500)

class SourceError(BarcodeScannerError):
	pass


class SourceNotFoundError(SourceError):
	pass


class FetchTimeoutError(SourceError):
	pass


class ExtractionError(BarcodeScannerError):
	pass


# Per-page errors, recovered by the pipeline

class ImageLoadError(BarcodeScannerError):
	pass


class BitmapError(BarcodeScannerError):
	pass


class ReaderError(BarcodeScannerError):
	pass


class BarcodeNotFoundError(BarcodeScannerError):
	def __init__(self, last_error: Optional[BaseException]):
		super().__init__(f"no barcode found with any reader, last error: {last_error}")
		self.last_error = last_error


# Notifier errors, logged only

class NotifierError(BarcodeScannerError):
	pass


class NotifierConfigError(NotifierError):
	pass


class NotifierTransportError(NotifierError):
	pass


class NotifierStatusError(NotifierError):
	def __init__(self, status_code: int, body: str):
		super().__init__(f"webhook returned non-200 status: {status_code}, body: {body}")
		self.status_code = status_code
		self.body = body
