import argparse
import dataclasses
import json
import logging
import os
import sys
from typing import List, Optional

from tqdm import tqdm

from .config import PipelineConfig, parse_page_limit
from .handler import handle_request
from .logging_utils import add_logging_args, configure_logging

logger = logging.getLogger(__name__)


class _NullNotifier:
	def notify(self, barcodes, document_key) -> None:
		logger.debug("Dry run: not sending %d barcode(s) for %s", len(barcodes), document_key)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
	p = argparse.ArgumentParser(prog="pdf-barcodes", description="Scan PDF documents for linear barcodes")
	p.add_argument("pdfs", nargs="+", help="PDF files to scan")
	p.add_argument("--page-limit", help="Scan images from pages 1..N only (default: PDF_PAGE_LIMIT or 1)")
	p.add_argument("--dry-run", action="store_true", help="Do not call the webhook; print results only")
	p.add_argument("--json", action="store_true", help="Print one JSON response body per document")
	p.add_argument("--debug-dumps", help="Directory to save extracted and preprocessed images")
	add_logging_args(p)
	return p.parse_args(argv)


def build_config(args: argparse.Namespace, base: Optional[PipelineConfig] = None) -> PipelineConfig:
	config = base or PipelineConfig.from_env()
	overrides = {}
	if args.page_limit is not None:
		overrides["page_limit"] = parse_page_limit(args.page_limit)
	if args.debug_dumps:
		overrides["debug_dir"] = args.debug_dumps
	return dataclasses.replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
	args = parse_args(argv)
	configure_logging(args.log_level, args.verbose, args.quiet)
	config = build_config(args)

	failures = 0
	for path in tqdm(args.pdfs, desc="Scanning PDFs", disable=len(args.pdfs) < 2):
		doc_config = dataclasses.replace(config, test_pdf_path=os.path.abspath(path))
		notifier = _NullNotifier() if args.dry_run else None
		response = handle_request(None, config=doc_config, notifier=notifier)
		if response.status_code != 200:
			failures += 1
			print(f"{path}: error {response.status_code}: {response.body}", file=sys.stderr)
			continue
		if args.json:
			print(response.body)
			continue
		barcodes = json.loads(response.body)["barcodes"]
		if not barcodes:
			print(f"{path}\t(no barcodes)")
		for value in barcodes:
			print(f"{path}\t{value}")
	return 1 if failures else 0


if __name__ == "__main__":
	sys.exit(main())
