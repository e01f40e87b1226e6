import logging
import os
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

SOURCE_DOCUMENT_EXT = ".pdf"


def parse_page_number(file_name: str) -> Optional[int]:
	"""Return the page number encoded as the second `_` token, or None.

	Names that do not carry an integer page number are not page images
	(extractor artifacts, stray files) and are skipped on purpose.
	"""
	parts = file_name.split("_")
	if len(parts) < 2:
		return None
	try:
		return int(parts[1])
	except ValueError:
		return None


def select_page_files(file_names: Iterable[str], page_limit: int) -> List[str]:
	"""Return the page images with page number <= page_limit, sorted by name.

	Sorting is lexicographic on the file name, not numeric on the page, so
	`page_10_a.png` comes before `page_2_a.png`.
	"""
	selected: List[str] = []
	for name in set(file_names):
		_root, ext = os.path.splitext(name)
		if ext.lower() == SOURCE_DOCUMENT_EXT:
			continue
		page = parse_page_number(name)
		if page is None:
			logger.debug("Skipping %s: no page number", name)
			continue
		if page <= page_limit:
			selected.append(name)
	return sorted(selected)


def list_extracted_files(directory: str) -> List[str]:
	"""Return the names of regular files directly inside `directory`."""
	abspath = os.path.abspath(directory)
	if not os.path.isdir(abspath):
		raise FileNotFoundError(f"Extraction directory not found: {abspath}")
	found: List[str] = []
	for entry in os.scandir(abspath):
		if entry.is_file():
			found.append(entry.name)
	return sorted(found)
