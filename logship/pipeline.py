from collections.abc import Iterable, Mapping
import logging
from typing import Any

from logship.config import ConfigError, OperatingConfig, Settings, validate_config
from logship.execution_log import ExecutionLog
from logship.records import PendingBuffer, extract_records
from logship.schemas import PipelineResult
from logship.shipper import STATUS_OK, Shipper


logger = logging.getLogger(__name__)

STATUS_CONFIG_ERROR = 400
DEBUG_PREVIEW_CHARS = 500


class LogPipeline:
    def __init__(self, settings: Settings, shipper: Shipper | None = None) -> None:
        self.settings = settings
        self.shipper = shipper or Shipper(settings)

    def run(self, raw_records: Iterable[Any], environ: Mapping[str, str] | None = None) -> PipelineResult:
        log = ExecutionLog()
        try:
            config = validate_config(environ)
        except ConfigError as exc:
            log.error(f"Invalid configuration: {exc}")
            return PipelineResult(
                status_code=STATUS_CONFIG_ERROR, message=str(exc), logs=log.entries, config_error=str(exc)
            )

        return self.run_with_config(raw_records, config, log)

    def run_with_config(
        self,
        raw_records: Iterable[Any],
        config: OperatingConfig,
        log: ExecutionLog | None = None,
    ) -> PipelineResult:
        if log is None:
            log = ExecutionLog()
        log.debug_enabled = config.debug_enabled

        records = list(raw_records)
        log.debug(
            f"request data: {len(records)} records: {str(records)[:DEBUG_PREVIEW_CHARS]}",
            record_count=len(records),
        )

        buffer = PendingBuffer()
        summary = extract_records(records, buffer, log)
        log.add(
            f"Buffered {summary.written} records ({summary.failed} skipped)",
            records_written=summary.written,
            records_failed=summary.failed,
        )

        outcome = self.shipper.ship(buffer, config, log)
        if outcome.status_code == STATUS_OK:
            message = "Finished sending logs successfully"
        elif outcome.backup_blob:
            message = f"Failed to send logs (status {outcome.status_code}), stored in backup blob {outcome.backup_blob}"
        elif outcome.backup_error:
            message = f"Failed to send logs (status {outcome.status_code}) and backup failed: {outcome.backup_error}"
        else:
            message = f"Failed to send logs (status {outcome.status_code}), logs were dropped"

        logger.info(
            "invocation finished",
            extra={"status_code": outcome.status_code, "records_written": summary.written},
        )
        return PipelineResult(
            status_code=outcome.status_code,
            message=message,
            logs=log.entries,
            records_written=summary.written,
            records_failed=summary.failed,
            attempts=outcome.attempts,
            backup_blob=outcome.backup_blob,
            backup_error=outcome.backup_error,
        )
