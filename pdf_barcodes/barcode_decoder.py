"""
Barcode decoder cascade.

Every page image is preprocessed (see preprocess.py) and turned into a binary
bitmap, then handed to a fixed, ordered set of zxing-cpp linear readers:

	UPC/EAN -> Code128 -> Code39 -> Code93 -> ITF -> CodaBar

The first reader that finds a barcode wins; retail and shipping symbologies go
first since they are the common case. When every reader fails only the last
reader's error is reported.
"""

import logging
import os
from enum import Enum
from typing import Iterable, List, Optional, Tuple

import cv2
import numpy as np
import zxingcpp
from PIL import Image, UnidentifiedImageError

from .errors import BarcodeNotFoundError, BitmapError, ImageLoadError, ReaderError
from .models import DecodedBarcode, DecodeHints, PreprocessedImage
from .preprocess import preprocess_image

logger = logging.getLogger(__name__)

DEFAULT_HINTS = DecodeHints(try_harder=True, assume_pure_barcode=True)

_FRIENDLY_NAMES = {
	"UPCA": "UPC-A",
	"UPCE": "UPC-E",
	"EAN13": "EAN-13",
	"EAN8": "EAN-8",
	"Code128": "Code 128",
	"Code39": "Code 39",
	"Code93": "Code 93",
	"ITF": "ITF",
	"Codabar": "CodaBar",
}
FRIENDLY_FORMAT = {getattr(zxingcpp.BarcodeFormat, name): label for name, label in _FRIENDLY_NAMES.items()}


class BarcodeReader(Enum):
	"""Closed set of linear readers; declaration order is the cascade order."""

	UPC_EAN = ("UPC/EAN", ("EAN8", "EAN13", "UPCA", "UPCE"))
	CODE128 = ("Code128", ("Code128",))
	CODE39 = ("Code39", ("Code39",))
	CODE93 = ("Code93", ("Code93",))
	ITF = ("ITF", ("ITF",))
	CODABAR = ("CodaBar", ("Codabar",))

	def __init__(self, label: str, format_names: Tuple[str, ...]):
		self.label = label
		self.format_names = format_names

	@property
	def formats(self) -> tuple:
		return tuple(getattr(zxingcpp.BarcodeFormat, name) for name in self.format_names)

	def decode(self, bitmap: np.ndarray, hints: DecodeHints) -> DecodedBarcode:
		try:
			results = _read_barcodes_with_opts(bitmap, self.formats, hints)
		except (ValueError, RuntimeError) as exc:
			raise ReaderError(f"{self.label} reader failed: {exc}") from exc
		for r in results:
			text = r.text or ""
			if text:
				return DecodedBarcode(text=text, barcode_format=_friendly_format(r.format), reader_name=self.label)
		raise ReaderError(f"{self.label} reader found no barcode")


READER_ORDER: Tuple[BarcodeReader, ...] = tuple(BarcodeReader)


def _friendly_format(fmt_obj) -> str:
	label = FRIENDLY_FORMAT.get(fmt_obj)
	if label is not None:
		return label
	return str(fmt_obj).replace("BarcodeFormat.", "")


def _read_barcodes_with_opts(arr: np.ndarray, formats, hints: DecodeHints):
	# Linear readers scan rows over the whole height. zxing-cpp's is_pure makes
	# them read the middle row only, so assume_pure_barcode is not forwarded.
	return zxingcpp.read_barcodes(
		arr,
		formats=formats,
		try_rotate=hints.try_harder,
		try_downscale=hints.try_harder,
		is_pure=False,
	)


def to_binary_bitmap(preprocessed: PreprocessedImage) -> np.ndarray:
	"""Return a writable, contiguous uint8 bitmap for the readers."""
	pixels = preprocessed.pixels
	if pixels.ndim != 2 or pixels.size == 0:
		raise BitmapError(f"error creating binary bitmap: degenerate image of shape {pixels.shape}")
	return np.ascontiguousarray(pixels, dtype=np.uint8).copy()


def _dump_debug_bitmap(bitmap: np.ndarray, debug_dir: str, debug_name: str) -> None:
	try:
		os.makedirs(debug_dir, exist_ok=True)
		cv2.imwrite(os.path.join(debug_dir, f"{debug_name}_preprocessed.png"), bitmap)
	except (OSError, cv2.error) as exc:
		logger.debug("Could not write debug bitmap for %s: %s", debug_name, exc)


def decode_barcode(
	image: Image.Image,
	hints: DecodeHints = DEFAULT_HINTS,
	readers: Iterable[BarcodeReader] = READER_ORDER,
	debug_dir: Optional[str] = None,
	debug_name: Optional[str] = None,
) -> DecodedBarcode:
	"""Decode the first linear barcode found in `image`.

	Raises BitmapError when the image cannot be turned into a bitmap (no reader
	is tried) and BarcodeNotFoundError when every reader fails.
	"""
	width, height = image.size
	logger.debug("Processing image with dimensions: %dx%d", width, height)

	preprocessed = preprocess_image(image)
	bitmap = to_binary_bitmap(preprocessed)
	if debug_dir:
		_dump_debug_bitmap(bitmap, debug_dir, debug_name or "image")

	last_error: Optional[BaseException] = None
	for reader in readers:
		try:
			found = reader.decode(bitmap, hints)
		except ReaderError as exc:
			last_error = exc
			logger.debug("Attempt with %s reader failed: %s", reader.label, exc)
			continue
		logger.info("Found %s barcode using %s reader: %s", found.barcode_format, reader.label, found.text)
		return found

	raise BarcodeNotFoundError(last_error) from last_error


def load_image(path: str) -> Image.Image:
	try:
		with Image.open(path) as img:
			return img.convert("RGB")
	except (UnidentifiedImageError, OSError) as exc:
		raise ImageLoadError(f"error decoding image {os.path.basename(path)}: {exc}") from exc


__all__: List[str] = [
	"BarcodeReader",
	"READER_ORDER",
	"DEFAULT_HINTS",
	"decode_barcode",
	"to_binary_bitmap",
	"load_image",
]
