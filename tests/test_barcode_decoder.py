"""Tests for the ordered reader cascade."""

import numpy as np
import pytest
import zxingcpp
from PIL import Image

import pdf_barcodes.barcode_decoder as decoder
from pdf_barcodes.barcode_decoder import (
	READER_ORDER,
	BarcodeReader,
	decode_barcode,
	load_image,
	to_binary_bitmap,
)
from pdf_barcodes.errors import BarcodeNotFoundError, BitmapError, ImageLoadError, ReaderError
from pdf_barcodes.models import DecodedBarcode, DecodeHints, PreprocessedImage


class FakeReader:
	def __init__(self, label, text=None):
		self.label = label
		self.text = text
		self.calls = []

	def decode(self, bitmap, hints):
		self.calls.append(hints)
		if self.text is None:
			raise ReaderError(f"{self.label} reader found no barcode")
		return DecodedBarcode(text=self.text, barcode_format=self.label, reader_name=self.label)


@pytest.fixture
def page_image():
	return Image.new("RGB", (120, 120), "white")


class TestReaderOrder:
	def test_fixed_order(self):
		assert [r.label for r in READER_ORDER] == ["UPC/EAN", "Code128", "Code39", "Code93", "ITF", "CodaBar"]

	def test_upc_ean_reader_covers_retail_formats(self):
		assert BarcodeReader.UPC_EAN.format_names == ("EAN8", "EAN13", "UPCA", "UPCE")


class TestCascade:
	def test_first_success_wins(self, page_image):
		readers = [FakeReader("A"), FakeReader("B", "first"), FakeReader("C", "second")]
		found = decode_barcode(page_image, readers=readers)
		assert found.text == "first"
		assert found.reader_name == "B"
		assert readers[2].calls == []

	def test_earlier_reader_wins_when_two_match(self, page_image):
		readers = [FakeReader("Code128", "ABC123"), FakeReader("Code39", "ABC123-39")]
		assert decode_barcode(page_image, readers=readers).reader_name == "Code128"
		assert readers[1].calls == []

	def test_all_fail_wraps_last_error_only(self, page_image):
		readers = [FakeReader("A"), FakeReader("B"), FakeReader("LAST")]
		with pytest.raises(BarcodeNotFoundError) as excinfo:
			decode_barcode(page_image, readers=readers)
		assert "LAST reader found no barcode" in str(excinfo.value.last_error)
		assert excinfo.value.__cause__ is excinfo.value.last_error
		assert all(len(r.calls) == 1 for r in readers)

	def test_hints_passed_uniformly(self, page_image):
		hints = DecodeHints(try_harder=False, assume_pure_barcode=True)
		readers = [FakeReader("A"), FakeReader("B")]
		with pytest.raises(BarcodeNotFoundError):
			decode_barcode(page_image, hints=hints, readers=readers)
		assert readers[0].calls == [hints]
		assert readers[1].calls == [hints]

	def test_bitmap_failure_aborts_before_readers(self, page_image, monkeypatch):
		degenerate = PreprocessedImage(np.zeros((0, 0), dtype=np.uint8), 0, 255, True)
		monkeypatch.setattr(decoder, "preprocess_image", lambda img: degenerate)
		reader = FakeReader("A", "never")
		with pytest.raises(BitmapError):
			decode_barcode(page_image, readers=[reader])
		assert reader.calls == []

	def test_decoding_runs_on_preprocessed_bitmap(self, page_image):
		seen = []

		class Capture(FakeReader):
			def decode(self, bitmap, hints):
				seen.append(bitmap)
				return super().decode(bitmap, hints)

		decode_barcode(page_image.convert("RGB"), readers=[Capture("A", "x")])
		assert seen[0].ndim == 2
		assert seen[0].dtype == np.uint8


class TestBinaryBitmap:
	def test_copy_is_writable(self):
		pixels = np.zeros((3, 4), dtype=np.uint8)
		pixels.setflags(write=False)
		bitmap = to_binary_bitmap(PreprocessedImage(pixels, 0, 255, True))
		assert bitmap.flags.writeable
		assert bitmap.shape == (3, 4)

	@pytest.mark.parametrize("shape", [(0, 5), (5, 0), (4,)])
	def test_degenerate_shapes_rejected(self, shape):
		with pytest.raises(BitmapError):
			to_binary_bitmap(PreprocessedImage(np.zeros(shape, dtype=np.uint8), 0, 255, True))


class TestRealDecode:
	def test_code128_symbol(self, code128_image):
		found = decode_barcode(code128_image)
		assert found.text == "ABC123"
		assert found.reader_name == "Code128"
		assert found.barcode_format == "Code 128"

	@pytest.mark.parametrize("position", [(50, 50), (400, 760), (600, 1400)])
	def test_code128_anywhere_on_scanned_page(self, scanned_page, position):
		found = decode_barcode(scanned_page(position=position))
		assert found.text == "ABC123"
		assert found.reader_name == "Code128"

	def test_blank_page_reports_codabar_as_last_error(self):
		with pytest.raises(BarcodeNotFoundError) as excinfo:
			decode_barcode(Image.new("RGB", (300, 200), "white"))
		assert "CodaBar" in str(excinfo.value.last_error)

	def test_debug_dump_written(self, code128_image, tmp_path):
		decode_barcode(code128_image, debug_dir=str(tmp_path), debug_name="page_1_0")
		assert (tmp_path / "page_1_0_preprocessed.png").exists()


class TestReaderOptions:
	def capture(self, monkeypatch, result=()):
		calls = []

		def read_barcodes(arr, **kwargs):
			calls.append(kwargs)
			return list(result)

		monkeypatch.setattr(decoder.zxingcpp, "read_barcodes", read_barcodes)
		return calls

	def test_rows_are_scanned_whatever_the_pure_hint(self, monkeypatch):
		calls = self.capture(monkeypatch)
		bitmap = np.zeros((10, 10), dtype=np.uint8)
		with pytest.raises(ReaderError):
			BarcodeReader.CODE128.decode(bitmap, DecodeHints(try_harder=True, assume_pure_barcode=True))
		assert calls == [{
			"formats": (zxingcpp.BarcodeFormat.Code128,),
			"try_rotate": True,
			"try_downscale": True,
			"is_pure": False,
		}]

	def test_try_harder_off(self, monkeypatch):
		calls = self.capture(monkeypatch)
		with pytest.raises(ReaderError):
			BarcodeReader.ITF.decode(np.zeros((10, 10), dtype=np.uint8), DecodeHints(try_harder=False))
		assert calls[0]["try_rotate"] is False
		assert calls[0]["try_downscale"] is False

	def test_upc_ean_formats_passed_as_tuple(self):
		assert BarcodeReader.UPC_EAN.formats == (
			zxingcpp.BarcodeFormat.EAN8,
			zxingcpp.BarcodeFormat.EAN13,
			zxingcpp.BarcodeFormat.UPCA,
			zxingcpp.BarcodeFormat.UPCE,
		)

	def test_type_error_is_not_swallowed(self, monkeypatch):
		def read_barcodes(arr, **kwargs):
			raise TypeError("unexpected keyword")

		monkeypatch.setattr(decoder.zxingcpp, "read_barcodes", read_barcodes)
		with pytest.raises(TypeError):
			BarcodeReader.CODE39.decode(np.zeros((10, 10), dtype=np.uint8), DecodeHints())

	@pytest.mark.parametrize("name, label", [("Code128", "Code 128"), ("Codabar", "CodaBar"), ("EAN13", "EAN-13")])
	def test_friendly_format_names(self, name, label):
		assert decoder._friendly_format(getattr(zxingcpp.BarcodeFormat, name)) == label


class TestLoadImage:
	def test_loads_as_rgb(self, tmp_path):
		path = tmp_path / "page_1_0.png"
		Image.new("L", (10, 10), 0).save(path)
		assert load_image(str(path)).mode == "RGB"

	def test_unreadable_file(self, tmp_path):
		path = tmp_path / "page_1_0.png"
		path.write_bytes(b"not an image")
		with pytest.raises(ImageLoadError):
			load_image(str(path))
