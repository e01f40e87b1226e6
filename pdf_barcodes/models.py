import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from PIL import Image


@dataclass
class PageImage:
	"""A loaded page raster and the page index parsed from its file name."""
	file_name: str
	page_number: Optional[int]
	image: Image.Image


@dataclass(frozen=True)
class PreprocessedImage:
	"""Grayscale raster produced once per page image.

	`pixels` is a read-only 2-D uint8 array with the source image's dimensions.
	`stretched` is False when the plain luminance conversion was returned.
	"""
	pixels: np.ndarray
	min_value: int
	max_value: int
	stretched: bool

	@property
	def width(self) -> int:
		return int(self.pixels.shape[1])

	@property
	def height(self) -> int:
		return int(self.pixels.shape[0])

	def to_pil(self) -> Image.Image:
		return Image.fromarray(np.ascontiguousarray(self.pixels))


@dataclass(frozen=True)
class DecodeHints:
	try_harder: bool = True
	assume_pure_barcode: bool = True


@dataclass(frozen=True)
class DecodedBarcode:
	text: str
	barcode_format: str
	reader_name: str


@dataclass
class BarcodeData:
	s3_key: str
	barcode_array: List[str] = field(default_factory=list)

	def to_payload(self) -> Dict:
		return {"s3_key": self.s3_key, "barcode_array": list(self.barcode_array)}


@dataclass
class ResponseBody:
	bucket: str
	key: str
	barcodes: List[str] = field(default_factory=list)

	def to_json(self) -> str:
		return json.dumps({"bucket": self.bucket, "key": self.key, "barcodes": list(self.barcodes)})


@dataclass
class Response:
	status_code: int
	body: str

	def to_dict(self) -> Dict:
		return {"statusCode": self.status_code, "body": self.body}
