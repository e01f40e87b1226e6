import io
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError

from .config import DEFAULT_FETCH_TIMEOUT
from .errors import FetchTimeoutError, InvalidDocumentError, SourceError, SourceNotFoundError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
NOT_FOUND_CODES = {"NoSuchKey", "NoSuchBucket", "404", "NotFound"}


def validate_pdf_bytes(data: bytes) -> None:
	if not data:
		raise InvalidDocumentError("Empty PDF file")
	if not data.startswith(PDF_MAGIC):
		raise InvalidDocumentError("Invalid PDF format: missing %PDF header")


class LocalFileSource:
	def fetch(self, path: str) -> bytes:
		try:
			with open(path, "rb") as f:
				return f.read()
		except FileNotFoundError as e:
			raise SourceNotFoundError(f"PDF not found: {path}") from e
		except OSError as e:
			raise SourceError(f"Error reading PDF {path}: {e}") from e


def _require_boto3():
	try:
		import boto3  # type: ignore
		from botocore.config import Config  # type: ignore
		from botocore.exceptions import BotoCoreError, ClientError  # type: ignore
	except ImportError as e:
		raise SourceError("Missing dependency: boto3 is required to read from S3 (pip install pdf-barcode-scanner[s3])") from e
	return boto3, Config, (BotoCoreError, ClientError)


class S3Source:
	"""Fetches object bytes from S3; the body read is bounded by `timeout` seconds."""

	def __init__(self, client=None, timeout: float = DEFAULT_FETCH_TIMEOUT):
		self._client = client
		self.timeout = timeout

	@property
	def client(self):
		if self._client is None:
			boto3, Config, _ = _require_boto3()
			self._client = boto3.client("s3", config=Config(retries={"max_attempts": 3, "mode": "standard"}))
		return self._client

	def fetch(self, bucket: str, key: str) -> bytes:
		_, _, (BotoCoreError, ClientError) = _require_boto3()

		logger.info("Attempting to get object from S3 - Bucket: %s, Key: %s", bucket, key)
		try:
			result = self.client.get_object(Bucket=bucket, Key=key)
		except ClientError as e:
			code = str(e.response.get("Error", {}).get("Code", ""))
			if code in NOT_FOUND_CODES:
				raise SourceNotFoundError(f"Object not found in S3 (bucket: {bucket}, key: {key})") from e
			raise SourceError(f"Failed to get object from S3 (bucket: {bucket}, key: {key}): {e}") from e
		except BotoCoreError as e:
			raise SourceError(f"Failed to get object from S3 (bucket: {bucket}, key: {key}): {e}") from e

		body = result["Body"]
		return self._read_with_timeout(body, bucket, key)

	def _read_with_timeout(self, body, bucket: str, key: str) -> bytes:
		buf = io.BytesIO()
		executor = ThreadPoolExecutor(max_workers=1)
		future = executor.submit(lambda: buf.write(body.read()))
		try:
			future.result(timeout=self.timeout)
		except FutureTimeoutError as e:
			raise FetchTimeoutError(f"Timeout reading PDF from S3 after {self.timeout:g}s (bucket: {bucket}, key: {key})") from e
		except Exception as e:
			raise SourceError(f"Error reading PDF from S3 (bucket: {bucket}, key: {key}): {e}") from e
		finally:
			body.close()
			executor.shutdown(wait=False)
		return buf.getvalue()
