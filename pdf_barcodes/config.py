import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 1
DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_WEBHOOK_TIMEOUT = 30.0
DEFAULT_DEBUG_DIR = "/tmp/pdf-debug"


def load_env_chain() -> None:
	load_dotenv()
	if os.path.exists(".env.local"):
		load_dotenv(dotenv_path=".env.local", override=True)
	elif os.path.exists("env.local"):
		load_dotenv(dotenv_path="env.local", override=True)


def parse_page_limit(value: Optional[str]) -> int:
	"""Return a positive page limit; anything else falls back to 1."""
	if value is None or not str(value).strip():
		return DEFAULT_PAGE_LIMIT
	try:
		limit = int(str(value).strip())
	except ValueError:
		logger.warning("Invalid page limit %r, defaulting to %d", value, DEFAULT_PAGE_LIMIT)
		return DEFAULT_PAGE_LIMIT
	if limit <= 0:
		logger.warning("Invalid page limit %r, defaulting to %d", value, DEFAULT_PAGE_LIMIT)
		return DEFAULT_PAGE_LIMIT
	return limit


def _flag(value: Optional[str]) -> bool:
	return value == "true"


@dataclass
class PipelineConfig:
	page_limit: int = DEFAULT_PAGE_LIMIT
	webhook_url: Optional[str] = None
	webhook_token: Optional[str] = None
	# Only ever enabled explicitly (SKIP_TLS_VERIFY=true)
	skip_tls_verify: bool = False
	debug: bool = False
	notify_per_page: bool = True
	fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
	webhook_timeout: float = DEFAULT_WEBHOOK_TIMEOUT
	# Local mode: read this file instead of fetching from object storage
	test_pdf_path: Optional[str] = None
	# Copies of extracted and preprocessed images are written here when set
	debug_dir: Optional[str] = None

	@classmethod
	def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineConfig":
		if environ is None:
			load_env_chain()
			environ = os.environ
		debug_dir = (environ.get("PDF_DEBUG_DIR") or "").strip() or None
		if debug_dir is None and _flag(environ.get("TEST_DEBUG")):
			debug_dir = DEFAULT_DEBUG_DIR
		return cls(
			page_limit=parse_page_limit(environ.get("PDF_PAGE_LIMIT")),
			webhook_url=(environ.get("WEBHOOK_URL") or "").strip() or None,
			webhook_token=(environ.get("WEBHOOK_TOKEN") or "").strip() or None,
			skip_tls_verify=_flag(environ.get("SKIP_TLS_VERIFY")),
			debug=_flag(environ.get("DEBUG")),
			notify_per_page=environ.get("NOTIFY_PER_PAGE") != "false",
			test_pdf_path=(environ.get("TEST_PDF_PATH") or "").strip() or None,
			debug_dir=debug_dir,
		)
