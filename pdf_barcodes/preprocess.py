"""
Contrast preprocessing for linear barcode decoding.

Page images are reduced to 8-bit luminance, then contrast-stretched and hard
thresholded into a pure black/white raster. Small crops are always stretched
over the full 0..255 range; large images with too little measured contrast are
returned as plain grayscale so uniform regions do not turn into noise.
"""

import logging

import numpy as np
from PIL import Image

from .models import PreprocessedImage

logger = logging.getLogger(__name__)

# Images narrower or shorter than this are always stretched over 0..255
SMALL_IMAGE_SIDE = 100
# Minimum measured (max - min) luminance range for stretching a large image
MIN_CONTRAST = 30
# Stretched values above this become white, everything else black
BINARY_THRESHOLD = 128


def to_luminance(image: Image.Image) -> np.ndarray:
	"""Return Y = 0.299R + 0.587G + 0.114B in float64, truncated to uint8.

	Truncation follows the float sum, so some gray levels drop by one
	(gray 1 -> 0, gray 4 -> 3).
	"""
	rgb = np.asarray(image.convert("RGB"), dtype=np.float64)
	weighted = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
	return weighted.astype(np.uint8)


def _frozen(arr: np.ndarray) -> np.ndarray:
	arr.setflags(write=False)
	return arr


def stretch_and_threshold(gray: np.ndarray, min_value: int, max_value: int) -> np.ndarray:
	span = float(max_value - min_value)
	normalized = np.floor((gray.astype(np.float64) - min_value) / span * 255.0 + 0.5)
	return np.where(normalized > BINARY_THRESHOLD, 255, 0).astype(np.uint8)


def preprocess_image(image: Image.Image) -> PreprocessedImage:
	width, height = image.size
	gray = to_luminance(image)
	if gray.size:
		min_value, max_value = int(gray.min()), int(gray.max())
	else:
		min_value, max_value = 255, 0
	logger.debug(
		"Image preprocessing - Min value: %d, Max value: %d, Contrast: %d",
		min_value, max_value, max_value - min_value,
	)

	if width < SMALL_IMAGE_SIDE or height < SMALL_IMAGE_SIDE:
		logger.debug("Small image detected (%dx%d), forcing full contrast range", width, height)
		min_value, max_value = 0, 255
	elif max_value - min_value < MIN_CONTRAST:
		logger.debug("Not enough contrast (%d), using original grayscale", max_value - min_value)
		return PreprocessedImage(_frozen(gray), min_value, max_value, stretched=False)

	enhanced = stretch_and_threshold(gray, min_value, max_value)
	return PreprocessedImage(_frozen(enhanced), min_value, max_value, stretched=True)
