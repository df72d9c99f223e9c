from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FlatRecord:
    index: int
    value: Any


@dataclass(frozen=True)
class WrappedRecordList:
    index: int
    records: list[Any]


@dataclass(frozen=True)
class ShipmentAttempt:
    attempt_index: int
    status_code: int
    backoff_seconds: float


@dataclass(frozen=True)
class PipelineResult:
    status_code: int
    message: str
    logs: list[str]
    records_written: int = 0
    records_failed: int = 0
    attempts: list[ShipmentAttempt] = field(default_factory=list)
    backup_blob: str | None = None
    backup_error: str | None = None
    config_error: str | None = None


@dataclass(frozen=True)
class InvokeRequest:
    records: list[Any]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InvokeResponse:
    outputs: dict[str, Any]
    logs: list[str]
    return_value: str

    def to_dict(self) -> dict[str, object]:
        return {"Outputs": self.outputs, "Logs": self.logs, "ReturnValue": self.return_value}
