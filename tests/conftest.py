"""Shared fixtures: rendered Code 128 symbols, small PDFs and a recording notifier."""

import io
from pathlib import Path
from typing import List, Optional

import pypdfium2 as pdfium
import pytest
from PIL import Image

from pdf_barcodes.models import BarcodeData

# Bar/space module widths for Code 128 symbol values 0..106
CODE128_PATTERNS = [
	"212222", "222122", "222221", "121223", "121322", "131222", "122213", "122312", "132212", "221213",
	"221312", "231212", "112232", "122132", "122231", "113222", "123122", "123221", "223211", "221132",
	"221231", "213212", "223112", "312131", "311222", "321122", "321221", "312212", "322112", "322211",
	"212123", "212321", "232121", "111323", "131123", "131321", "112313", "132113", "132311", "211313",
	"231113", "231311", "112133", "112331", "132131", "113123", "113321", "133121", "313121", "211331",
	"231131", "213113", "213311", "213131", "311123", "311321", "331121", "312113", "312311", "332111",
	"314111", "221411", "431111", "111224", "111422", "121124", "121421", "141122", "141221", "112214",
	"112412", "122114", "122411", "142112", "142211", "241211", "221114", "413111", "241112", "134111",
	"111242", "121142", "121241", "114212", "124112", "124211", "411212", "421112", "421211", "212141",
	"214121", "412121", "111143", "111341", "131141", "114113", "114311", "411113", "411311", "113141",
	"114131", "311141", "411131", "211412", "211214", "211232", "2331112",
]
START_B = 104
STOP = 106


def code128_modules(text: str) -> List[int]:
	"""Return the symbol as a list of module colors (1 = bar) using code set B."""
	values = [ord(ch) - 32 for ch in text]
	checksum = (START_B + sum(i * v for i, v in enumerate(values, start=1))) % 103
	modules: List[int] = []
	for value in [START_B] + values + [checksum, STOP]:
		for n, width in enumerate(CODE128_PATTERNS[value]):
			modules.extend([1 if n % 2 == 0 else 0] * int(width))
	return modules


def render_code128(text: str, module_px: int = 4, height: int = 120, quiet_modules: int = 12) -> Image.Image:
	modules = [0] * quiet_modules + code128_modules(text) + [0] * quiet_modules
	width = len(modules) * module_px
	img = Image.new("L", (width, height), 255)
	px = img.load()
	for i, bar in enumerate(modules):
		if not bar:
			continue
		for x in range(i * module_px, (i + 1) * module_px):
			for y in range(height):
				px[x, y] = 0
	return img


def paste_on_page(symbol: Image.Image, position, size=(1200, 1600)) -> Image.Image:
	"""Place a rendered symbol on a white page-sized scan at `position` (left, top)."""
	page = Image.new("L", size, 255)
	page.paste(symbol, position)
	return page


def pdf_bytes_from_images(images: List[Image.Image]) -> bytes:
	buf = io.BytesIO()
	first, rest = images[0].convert("RGB"), [im.convert("RGB") for im in images[1:]]
	first.save(buf, format="PDF", save_all=True, append_images=rest, resolution=72.0)
	return buf.getvalue()


def blank_pdf_bytes(pages: int = 1) -> bytes:
	doc = pdfium.PdfDocument.new()
	for _ in range(pages):
		doc.new_page(612, 792)
	buf = io.BytesIO()
	doc.save(buf)
	doc.close()
	return buf.getvalue()


class RecordingNotifier:
	def __init__(self, error: Optional[Exception] = None):
		self.calls: List[BarcodeData] = []
		self.error = error

	def notify(self, barcodes, document_key) -> None:
		self.calls.append(BarcodeData(s3_key=document_key, barcode_array=list(barcodes)))
		if self.error is not None:
			raise self.error


@pytest.fixture
def code128_image():
	return render_code128("ABC123")


@pytest.fixture
def code128_pdf(tmp_path) -> Path:
	path = tmp_path / "sample1.pdf"
	path.write_bytes(pdf_bytes_from_images([render_code128("ABC123")]))
	return path


@pytest.fixture
def blank_pdf(tmp_path) -> Path:
	path = tmp_path / "blank.pdf"
	path.write_bytes(blank_pdf_bytes())
	return path


@pytest.fixture
def notifier():
	return RecordingNotifier()


@pytest.fixture
def render_barcode():
	return render_code128


@pytest.fixture
def make_pdf():
	return pdf_bytes_from_images


@pytest.fixture
def failing_notifier():
	from pdf_barcodes.errors import NotifierStatusError

	return RecordingNotifier(error=NotifierStatusError(502, "bad gateway"))


@pytest.fixture
def scanned_page():
	def make(text="ABC123", position=(50, 50)):
		return paste_on_page(render_code128(text), position)
	return make
