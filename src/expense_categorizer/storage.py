"""Persistence media for serialized classifier models.

A model store is a named blob that can be read and written as text. Two
implementations are provided:

- :class:`LocalFileStore` keeps the model in a JSON file on local disk.
- :class:`S3ModelStore` keeps it in an S3 object, retrying transient
  failures with exponential back-off.

Stores raise :class:`~expense_categorizer.errors.ModelNotFoundError` when
nothing has been saved yet and :class:`~expense_categorizer.errors.PersistenceError`
for every other I/O failure. Deciding whether a failure is fatal is left to
the caller.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from .errors import ModelNotFoundError, PersistenceError

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class ModelStore(Protocol):
    """Get-by-name / put-by-name access to a serialized model."""

    @property
    def identifier(self) -> str:
        """Human-readable location of the model (path or URI)."""
        ...

    def exists(self) -> bool:
        ...

    def read(self) -> str:
        ...

    def write(self, payload: str) -> None:
        ...


# ---------------------------------------------------------------------------
# Local file store
# ---------------------------------------------------------------------------

class LocalFileStore:
    """Model store backed by a single UTF-8 file.

    Writes go to a temporary file in the target directory which then
    replaces the destination, so readers never observe a half-written model.

    Args:
        path: Destination file. Parent directories are created on write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @property
    def identifier(self) -> str:
        return str(self.path)

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> str:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError as exc:
            raise ModelNotFoundError(f"No model file at {self.path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Cannot read model file {self.path}: {exc}") from exc

    def write(self, payload: str) -> None:
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                f.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise PersistenceError(f"Cannot write model file {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def __repr__(self) -> str:
        return f"LocalFileStore({self.identifier!r})"


# ---------------------------------------------------------------------------
# S3 store
# ---------------------------------------------------------------------------

def _is_transient(exc: BaseException) -> bool:
    """Missing objects are final; other persistence failures are retried."""
    return isinstance(exc, PersistenceError) and not isinstance(exc, ModelNotFoundError)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", "Unknown"))


class S3ModelStore:
    """Model store backed by a single S3 object.

    Args:
        bucket: Bucket name.
        key: Object key of the serialized model.
        region: AWS region for the default client.
        client: Optional pre-built S3 client (mainly for tests).
        attempts: Maximum attempts for transient failures.
        backoff: Multiplier for the exponential wait between attempts, in seconds.
    """

    def __init__(
        self,
        bucket: str,
        key: str,
        region: str = "us-east-1",
        client: Any = None,
        attempts: int = 3,
        backoff: float = 1.0,
    ) -> None:
        self.bucket = bucket
        self.key = key
        self.region = region
        self._client = client or boto3.client("s3", region_name=region)
        self._attempts = attempts
        self._backoff = backoff

    @property
    def identifier(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._backoff, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )

    def exists(self) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=self.key)
            return True
        except ClientError as exc:
            if _error_code(exc) not in _NOT_FOUND_CODES:
                logger.warning("S3 head_object failed for %s: %s", self.identifier, exc)
            return False
        except BotoCoreError as exc:
            logger.warning("S3 head_object failed for %s: %s", self.identifier, exc)
            return False

    def read(self) -> str:
        for attempt in self._retrying():
            with attempt:
                return self._get_object()
        raise PersistenceError(f"Cannot read {self.identifier}")  # pragma: no cover

    def write(self, payload: str) -> None:
        for attempt in self._retrying():
            with attempt:
                self._put_object(payload)

    def _get_object(self) -> str:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=self.key)
            return response["Body"].read().decode("utf-8")
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise ModelNotFoundError(f"No model object at {self.identifier}") from exc
            raise PersistenceError(f"S3 download error for {self.identifier}: {exc}") from exc
        except (BotoCoreError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"S3 download error for {self.identifier}: {exc}") from exc

    def _put_object(self, payload: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=payload.encode("utf-8"),
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError) as exc:
            raise PersistenceError(f"S3 upload error for {self.identifier}: {exc}") from exc

    def __repr__(self) -> str:
        return f"S3ModelStore({self.identifier!r})"


def store_from_settings(settings: "Settings") -> ModelStore:
    """Pick the configured store: S3 when a bucket is set, else a local file."""
    if settings.s3_bucket:
        return S3ModelStore(settings.s3_bucket, settings.s3_key, region=settings.s3_region)
    return LocalFileStore(settings.model_path)
