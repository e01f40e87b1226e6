import logging
from pathlib import Path
from typing import List, Optional

import pypdfium2 as pdfium
import pypdfium2.raw as pdfium_c

from .errors import ExtractionError

logger = logging.getLogger(__name__)

IMAGE_NAME_PATTERN = "{stem}_{page}_{index}.png"


class PdfImageExtractor:
	"""Writes every embedded raster image of a PDF to disk, one PNG per image object.

	Files are named `<stem>_<page>_<index>.png` with a 1-based page number, so
	the page can be recovered as the second `_` token of the name.
	"""

	def extract(self, pdf_file: Path, out_dir: Path, max_page: Optional[int] = None) -> List[Path]:
		pdf_file = Path(pdf_file)
		out_dir = Path(out_dir)
		out_dir.mkdir(parents=True, exist_ok=True)
		stem = pdf_file.stem.replace("_", "-")

		try:
			doc = pdfium.PdfDocument(str(pdf_file))
		except pdfium.PdfiumError as e:
			raise ExtractionError(f"error opening PDF {pdf_file.name}: {e}") from e

		written: List[Path] = []
		try:
			page_count = len(doc)
			last_page = page_count if max_page is None else min(page_count, max_page)
			logger.debug("Extracting images from %d of %d page(s)", last_page, page_count)
			for page_num in range(1, last_page + 1):
				page = doc[page_num - 1]
				try:
					written.extend(self._extract_page(page, page_num, stem, out_dir))
				finally:
					page.close()
		except pdfium.PdfiumError as e:
			raise ExtractionError(f"error extracting images from PDF {pdf_file.name}: {e}") from e
		finally:
			doc.close()
		return written

	def _extract_page(self, page, page_num: int, stem: str, out_dir: Path) -> List[Path]:
		written: List[Path] = []
		images = page.get_objects(filter=(pdfium_c.FPDF_PAGEOBJ_IMAGE,))
		for index, obj in enumerate(images):
			out_file = out_dir / IMAGE_NAME_PATTERN.format(stem=stem, page=page_num, index=index)
			try:
				bitmap = obj.get_bitmap()
				pil_image = bitmap.to_pil()
			except pdfium.PdfiumError as e:
				logger.warning("Could not extract image %d on page %d: %s", index, page_num, e)
				continue
			try:
				pil_image.save(out_file, format="PNG")
			except OSError as e:
				raise ExtractionError(f"error writing {out_file.name}: {e}") from e
			written.append(out_file)
		return written
