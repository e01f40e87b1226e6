"""
Request handler: S3 event (or local test file) in, barcode response out.

	source bytes -> %PDF check -> temp dir -> embedded page images
	-> page selection -> BarcodePipeline -> {bucket, key, barcodes}

Input problems answer 400, storage and extraction failures answer 500, and
everything downstream of "page images exist" is best effort.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional, Tuple
from urllib.parse import unquote_plus

from .config import PipelineConfig
from .errors import (
	ExtractionError,
	FetchTimeoutError,
	InvalidDocumentError,
	InvalidEventError,
	SourceError,
	SourceNotFoundError,
)
from .logging_utils import LOG_LEVELS, configure_logging
from .models import Response, ResponseBody
from .notifier import WebhookNotifier
from .page_selector import list_extracted_files, select_page_files
from .pdf_images import PdfImageExtractor
from .pipeline import BarcodePipeline
from .sources import LocalFileSource, S3Source, validate_pdf_bytes

logger = logging.getLogger(__name__)

TEST_BUCKET = "test-bucket"
INPUT_PDF_NAME = "input.pdf"


def parse_s3_event(event: Optional[Dict]) -> Tuple[str, str]:
	"""Return (bucket, key) of the first record; keys arrive URL-encoded."""
	records = (event or {}).get("Records") or []
	if not records:
		raise InvalidEventError("No S3 event records")
	s3 = records[0].get("s3") or {}
	bucket = (s3.get("bucket") or {}).get("name") or ""
	key = unquote_plus((s3.get("object") or {}).get("key") or "")
	if not bucket or not key:
		raise InvalidEventError(f"Invalid S3 event: missing bucket or key (bucket={bucket!r}, key={key!r})")
	return bucket, key


def _copy_debug_images(src_dir: str, debug_dir: str) -> None:
	try:
		os.makedirs(debug_dir, exist_ok=True)
		for name in list_extracted_files(src_dir):
			if os.path.splitext(name)[1].lower() != ".pdf":
				shutil.copy2(os.path.join(src_dir, name), os.path.join(debug_dir, name))
	except OSError as e:
		logger.warning("Could not copy debug images to %s: %s", debug_dir, e)


def _error(status_code: int, message: str) -> Response:
	return Response(status_code=status_code, body=message)


def handle_request(
	event: Optional[Dict],
	context=None,
	*,
	config: Optional[PipelineConfig] = None,
	source=None,
	extractor: Optional[PdfImageExtractor] = None,
	notifier=None,
) -> Response:
	config = config or PipelineConfig.from_env()

	try:
		if config.test_pdf_path:
			bucket, key = TEST_BUCKET, config.test_pdf_path
			pdf_bytes = (source or LocalFileSource()).fetch(config.test_pdf_path)
		else:
			bucket, key = parse_s3_event(event)
			pdf_bytes = (source or S3Source(timeout=config.fetch_timeout)).fetch(bucket, key)
		logger.info("Read PDF file: %s (size: %d bytes)", key, len(pdf_bytes))
		validate_pdf_bytes(pdf_bytes)
	except (InvalidEventError, InvalidDocumentError) as e:
		logger.error("Rejected request: %s", e)
		return _error(400, str(e))
	except FetchTimeoutError as e:
		logger.error("%s", e)
		return _error(500, "Timeout reading PDF from S3")
	except SourceNotFoundError as e:
		logger.error("%s", e)
		return _error(500, f"PDF not found: {e}")
	except SourceError as e:
		logger.error("%s", e)
		return _error(500, f"Error reading PDF: {e}")

	extractor = extractor or PdfImageExtractor()
	if notifier is None:
		notifier = WebhookNotifier.from_config(config)

	with tempfile.TemporaryDirectory(prefix="pdf-images-") as tmp_dir:
		tmp_pdf = Path(tmp_dir) / INPUT_PDF_NAME
		try:
			tmp_pdf.write_bytes(pdf_bytes)
		except OSError as e:
			logger.error("Error writing temporary PDF: %s", e)
			return _error(500, "Error writing temporary PDF")

		logger.info("Extracting images from PDF %s to %s", tmp_pdf, tmp_dir)
		try:
			extracted = extractor.extract(tmp_pdf, Path(tmp_dir), max_page=config.page_limit)
		except ExtractionError as e:
			logger.error("Error extracting images from PDF: %s", e)
			return _error(500, "Error extracting images from PDF")
		logger.info("Extracted %d image(s) in %s", len(extracted), tmp_dir)

		if config.debug_dir:
			_copy_debug_images(tmp_dir, config.debug_dir)

		names = select_page_files(list_extracted_files(tmp_dir), config.page_limit)
		pipeline = BarcodePipeline(config, notifier=notifier)
		barcodes = pipeline.run([os.path.join(tmp_dir, n) for n in names], document_key=key)

	body = ResponseBody(bucket=bucket, key=key, barcodes=barcodes)
	return Response(status_code=200, body=body.to_json())


def lambda_handler(event, context):
	level = os.environ.get("LOG_LEVEL", "info").lower()
	configure_logging(level if level in LOG_LEVELS else "info")
	return handle_request(event, context).to_dict()
