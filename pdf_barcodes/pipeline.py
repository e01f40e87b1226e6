import logging
import os
from typing import Callable, Iterable, List, Optional

from PIL import Image

from .barcode_decoder import decode_barcode, load_image
from .config import PipelineConfig
from .errors import BarcodeScannerError, NotifierError
from .models import DecodedBarcode, PageImage
from .page_selector import list_extracted_files, parse_page_number, select_page_files

logger = logging.getLogger(__name__)

ImageLoader = Callable[[str], Image.Image]
Decoder = Callable[..., DecodedBarcode]


class BarcodePipeline:
	"""Scans selected page images in order and reports what was found.

	Page-level failures (unreadable image, no barcode) are logged and skipped.
	Each found barcode is sent to the notifier right away (when
	`config.notify_per_page` is set) and the whole batch is sent once more at
	the end, even when it is empty. Notifier failures never fail the run.
	"""

	def __init__(
		self,
		config: PipelineConfig,
		notifier=None,
		image_loader: ImageLoader = load_image,
		decoder: Decoder = decode_barcode,
	):
		self.config = config
		self.notifier = notifier
		self.image_loader = image_loader
		self.decoder = decoder

	def _notify(self, barcodes: List[str], document_key: str) -> None:
		if self.notifier is None:
			return
		try:
			self.notifier.notify(barcodes, document_key)
		except NotifierError as e:
			logger.error("Error sending barcode data to API: %s", e)

	def run(
		self,
		selected_files: Iterable[str],
		load_image: Optional[ImageLoader] = None,
		document_key: str = "",
	) -> List[str]:
		loader = load_image or self.image_loader
		found_barcodes: List[str] = []
		for path in selected_files:
			file_name = os.path.basename(path)
			try:
				page = PageImage(file_name, parse_page_number(file_name), loader(path))
			except (BarcodeScannerError, OSError) as e:
				logger.warning("Error decoding image %s: %s", file_name, e)
				continue

			width, height = page.image.size
			logger.info("Processing page %s image %s (dimensions: %dx%d)", page.page_number, file_name, width, height)
			try:
				found = self.decoder(page.image, debug_dir=self.config.debug_dir, debug_name=os.path.splitext(file_name)[0])
			except BarcodeScannerError as e:
				logger.info("Failed to extract barcode from page %s image %s: %s", page.page_number, file_name, e)
				continue

			logger.info("Found barcode on page %s in image %s: %s", page.page_number, file_name, found.text)
			found_barcodes.append(found.text)
			if self.config.notify_per_page:
				self._notify([found.text], document_key)

		self._notify(list(found_barcodes), document_key)
		return found_barcodes

	def scan_directory(self, directory: str, page_limit: Optional[int] = None, document_key: str = "") -> List[str]:
		limit = self.config.page_limit if page_limit is None else page_limit
		names = select_page_files(list_extracted_files(directory), limit)
		logger.info("Selected %d image(s) within page limit %d", len(names), limit)
		return self.run([os.path.join(directory, n) for n in names], document_key=document_key)
