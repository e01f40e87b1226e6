import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import requests

from .config import DEFAULT_WEBHOOK_TIMEOUT, PipelineConfig
from .errors import NotifierConfigError, NotifierStatusError, NotifierTransportError
from .models import BarcodeData

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 10


@dataclass
class WebhookAuth:
	url: Optional[str]
	token: Optional[str]

	def check(self) -> None:
		if not self.url:
			raise NotifierConfigError("WEBHOOK_URL environment variable not set")
		if not self.token:
			raise NotifierConfigError("WEBHOOK_TOKEN environment variable not set")


class WebhookNotifier:
	"""Posts decoded barcodes for a document to the downstream webhook."""

	def __init__(
		self,
		url: Optional[str],
		token: Optional[str],
		skip_tls_verify: bool = False,
		timeout: float = DEFAULT_WEBHOOK_TIMEOUT,
		debug: bool = False,
		session: Optional[requests.Session] = None,
	):
		self.auth = WebhookAuth(url=url, token=token)
		self.skip_tls_verify = skip_tls_verify
		self.timeout = timeout
		self.debug = debug
		self.session = session or requests.Session()
		self.session.max_redirects = MAX_REDIRECTS
		self.session.headers.update({
			"Content-Type": "application/json",
			"Accept": "*/*",
		})
		if skip_tls_verify:
			logger.warning("TLS certificate verification is disabled for webhook calls")

	@classmethod
	def from_config(cls, config: PipelineConfig) -> "WebhookNotifier":
		return cls(
			url=config.webhook_url,
			token=config.webhook_token,
			skip_tls_verify=config.skip_tls_verify,
			timeout=config.webhook_timeout,
			debug=config.debug,
		)

	def notify(self, barcodes: Sequence[str], document_key: str) -> None:
		"""POST `{"s3_key", "barcode_array"}`; raise a NotifierError subclass on failure."""
		self.auth.check()
		data = BarcodeData(s3_key=document_key, barcode_array=list(barcodes))
		headers = {"Authorization": self.auth.token}
		if self.debug:
			logger.debug("Making request to: %s", self.auth.url)
			logger.debug("Headers: %s", sorted(list(self.session.headers.keys()) + ["Authorization"]))
		try:
			r = self.session.post(
				self.auth.url,
				json=data.to_payload(),
				headers=headers,
				timeout=self.timeout,
				verify=not self.skip_tls_verify,
			)
		except requests.RequestException as e:
			raise NotifierTransportError(
				f"error making webhook request: {e}\nTry setting SKIP_TLS_VERIFY=true if having TLS issues"
			) from e
		if r.status_code != 200:
			raise NotifierStatusError(r.status_code, r.text)
		logger.info("Successfully sent barcode data to webhook: %s", data.barcode_array)

	def close(self) -> None:
		self.session.close()
