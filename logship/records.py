import base64
from collections.abc import Iterable
from dataclasses import dataclass
import io
import json
from typing import Any

from logship.execution_log import ExecutionLog
from logship.schemas import FlatRecord, WrappedRecordList


class SerializationError(ValueError):
    pass


def _encode_default(value: Any) -> Any:
    # Raw bytes travel as base64 text, the same way the event hub payloads encode them.
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def serialize_record(record: Any) -> bytes:
    try:
        line = json.dumps(record, default=_encode_default, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(str(exc)) from exc
    return line.encode("utf-8") + b"\n"


class PendingBuffer:
    def __init__(self) -> None:
        self._buffer = io.BytesIO()

    def write(self, record: Any) -> int:
        payload = serialize_record(record)
        try:
            return self._buffer.write(payload)
        except (OSError, ValueError) as exc:
            raise SerializationError(f"buffer append failed: {exc}") from exc

    def getvalue(self) -> bytes:
        return self._buffer.getvalue()

    def clear(self) -> None:
        self._buffer.seek(0)
        self._buffer.truncate(0)

    def __len__(self) -> int:
        return self._buffer.tell()


@dataclass(frozen=True)
class ExtractionSummary:
    written: int
    failed: int


def classify_record(index: int, raw: Any) -> FlatRecord | WrappedRecordList:
    if not isinstance(raw, dict):
        return FlatRecord(index=index, value=raw)

    inner = raw.get("records")
    if inner is None:
        return FlatRecord(index=index, value=raw)
    if not isinstance(inner, list):
        raise SerializationError(f"'records' must be a list, got {type(inner).__name__}")
    return WrappedRecordList(index=index, records=inner)


def extract_records(raw_records: Iterable[Any], buffer: PendingBuffer, log: ExecutionLog) -> ExtractionSummary:
    # Only one level of "records" nesting is unwrapped.
    written = 0
    failed = 0

    for index, raw in enumerate(raw_records):
        try:
            classified = classify_record(index, raw)
        except SerializationError as exc:
            failed += 1
            log.error(f"Skipping malformed record {index}: {exc}", record_index=index)
            continue

        if isinstance(classified, WrappedRecordList):
            units = [(f"{index}.{position}", inner) for position, inner in enumerate(classified.records)]
        else:
            units = [(str(index), classified.value)]

        for label, value in units:
            try:
                buffer.write(value)
            except SerializationError as exc:
                failed += 1
                log.error(f"Error getting bytes for record {label}: {exc}", record_index=label)
                continue
            written += 1

    return ExtractionSummary(written=written, failed=failed)
