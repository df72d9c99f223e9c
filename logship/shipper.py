from collections.abc import Callable
from dataclasses import dataclass, field
import gzip
import time
import zlib

import requests

from logship.backup import BackupError, BlobBackupWriter
from logship.config import OperatingConfig, Settings
from logship.execution_log import ExecutionLog
from logship.records import PendingBuffer
from logship.retry import run_with_backoff
from logship.schemas import ShipmentAttempt


STATUS_OK = 200
STATUS_PAYLOAD_TOO_LARGE = 413
STATUS_COMPRESSION_FAILED = 500
# Transport failures never reach the listener; report them as a server-side error class.
STATUS_TRANSPORT_ERROR = 599

NON_RETRYABLE_FAILURES = {
    400: "bad request",
    401: "unauthorized",
    403: "forbidden",
    404: "not found",
}


def should_retry(status_code: int) -> bool:
    if status_code == STATUS_OK:
        return False
    return status_code not in NON_RETRYABLE_FAILURES


def compress_payload(raw: bytes) -> bytes:
    return gzip.compress(raw)


@dataclass(frozen=True)
class ShipmentOutcome:
    status_code: int
    attempts: list[ShipmentAttempt] = field(default_factory=list)
    backup_blob: str | None = None
    backup_error: str | None = None


class Shipper:
    def __init__(
        self,
        settings: Settings,
        *,
        session: requests.Session | None = None,
        backup_writer: BlobBackupWriter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.session = session
        self.backup_writer = backup_writer or BlobBackupWriter(container=settings.backup_container)
        self.sleep = sleep

    def ship(self, buffer: PendingBuffer, config: OperatingConfig, log: ExecutionLog) -> ShipmentOutcome:
        raw = buffer.getvalue()
        # Without an injected session each shipment gets its own connection pool.
        session = self.session or requests.Session()
        try:
            return self._ship(raw, config, log, session)
        finally:
            buffer.clear()
            if session is not self.session:
                session.close()

    def _ship(
        self, raw: bytes, config: OperatingConfig, log: ExecutionLog, session: requests.Session
    ) -> ShipmentOutcome:
        try:
            compressed = compress_payload(raw)
        except (OSError, zlib.error) as exc:
            log.error(f"Failed to compress {len(raw)} bytes, dropping shipment: {exc}")
            return ShipmentOutcome(status_code=STATUS_COMPRESSION_FAILED)

        if len(compressed) > self.settings.max_payload_bytes:
            log.error(
                f"Compressed payload of {len(compressed)} bytes exceeds the "
                f"{self.settings.max_payload_bytes} byte limit, cancelling shipment",
                size_bytes=len(compressed),
            )
            if not self.settings.backup_oversized_payloads:
                return ShipmentOutcome(status_code=STATUS_PAYLOAD_TOO_LARGE)
            return self._with_backup(STATUS_PAYLOAD_TOO_LARGE, [], raw, config, log)

        attempts = run_with_backoff(
            lambda: self.send_once(session, compressed, config, log, raw_size=len(raw)),
            max_attempts=self.settings.max_send_attempts,
            initial_backoff_seconds=self.settings.initial_backoff_seconds,
            should_retry=lambda status: self._classify(status, log),
            sleep=self.sleep,
            on_backoff=lambda attempt, delay: log.add(
                f"Failed to send logs, trying again in {delay:g}s", attempt=attempt, backoff_seconds=delay
            ),
        )
        status_code = attempts[-1].status_code
        if status_code == STATUS_OK:
            log.add(f"Logs shipped after {len(attempts)} attempt(s)", attempts=len(attempts))
            return ShipmentOutcome(status_code=status_code, attempts=attempts)

        log.error(f"Error sending logs, status code is: {status_code}", status_code=status_code)
        return self._with_backup(status_code, attempts, raw, config, log)

    def send_once(
        self, session: requests.Session, payload: bytes, config: OperatingConfig, log: ExecutionLog, *, raw_size: int
    ) -> int:
        url = f"{config.endpoint_url}/"
        log.add(f"Sending bulk of {raw_size} bytes ({len(payload)} compressed)", size_bytes=raw_size)
        try:
            response = session.post(
                url,
                params={"token": config.token, "type": "eventhub"},
                data=payload,
                headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
                timeout=self.settings.request_timeout_seconds,
            )
        except requests.RequestException as exc:
            log.error(f"Error sending logs to {url}: {exc}")
            return STATUS_TRANSPORT_ERROR

        try:
            # Drain the body so the connection can be reused.
            _ = response.content
        except requests.RequestException as exc:
            log.error(f"Error reading response body: {exc}")
        finally:
            response.close()

        log.add(f"Response status code: {response.status_code}", status_code=response.status_code)
        return response.status_code

    def _classify(self, status_code: int, log: ExecutionLog) -> bool:
        reason = NON_RETRYABLE_FAILURES.get(status_code)
        if reason:
            log.add(f"Got HTTP {status_code} {reason}, skip retry", status_code=status_code)
        return should_retry(status_code)

    def _with_backup(
        self,
        status_code: int,
        attempts: list[ShipmentAttempt],
        raw: bytes,
        config: OperatingConfig,
        log: ExecutionLog,
    ) -> ShipmentOutcome:
        log.add("Sending logs to backup storage")
        try:
            blob_name = self.backup_writer.persist(raw, config.backup_connection)
        except BackupError as exc:
            log.error(f"Backup failed, {len(raw)} bytes of logs were not stored: {exc}")
            return ShipmentOutcome(status_code=status_code, attempts=attempts, backup_error=str(exc))

        log.add(f"Logs written to backup blob {blob_name}", blob_name=blob_name)
        return ShipmentOutcome(status_code=status_code, attempts=attempts, backup_blob=blob_name)
