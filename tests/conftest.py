from collections.abc import Iterable
from pathlib import Path

import pytest
import requests

from logship.backup import BlobBackupWriter
from logship.config import Settings
from logship.pipeline import LogPipeline
from logship.shipper import Shipper


VALID_TOKEN = "abcdefghijklmnopqrstuvwxyzABCDEF"
VALID_LISTENER = "https://listener.logz.io:8071"
VALID_CONNECTION = "DefaultEndpointsProtocol=https;AccountName=logs;AccountKey=a2V5;EndpointSuffix=core.windows.net"


class FakeResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        self.content = b""
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Replays scripted status codes; an exception in the script is raised instead."""

    def __init__(self, statuses: Iterable[int | Exception]) -> None:
        self.statuses = list(statuses)
        self.calls: list[dict[str, object]] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        outcome = self.statuses[min(len(self.calls), len(self.statuses)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)


class FakeBlobClient:
    def __init__(self, service: "FakeBlobService", container: str, blob: str) -> None:
        self.service = service
        self.container = container
        self.blob = blob

    def upload_blob(self, data):
        if self.service.upload_error is not None:
            raise self.service.upload_error
        self.service.uploads.append((self.container, self.blob, bytes(data)))


class FakeBlobService:
    def __init__(self) -> None:
        self.connections: list[str] = []
        self.uploads: list[tuple[str, str, bytes]] = []
        self.upload_error: Exception | None = None

    def from_connection_string(self, connection: str) -> "FakeBlobService":
        self.connections.append(connection)
        return self

    def get_blob_client(self, container: str, blob: str) -> FakeBlobClient:
        return FakeBlobClient(self, container, blob)


@pytest.fixture()
def fixtures_dir() -> Path:
    return Path(__file__).resolve().parent / "fixtures"


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        app_name="logship",
        log_level="INFO",
        request_timeout_seconds=10,
        max_send_attempts=4,
        initial_backoff_seconds=2,
        max_payload_bytes=10_000_000,
        backup_container="logsbackup",
        backup_oversized_payloads=False,
    )


@pytest.fixture()
def valid_env() -> dict[str, str]:
    return {
        "LogzioToken": VALID_TOKEN,
        "LogzioListener": VALID_LISTENER,
        "LogsStorageConnectionString": VALID_CONNECTION,
    }


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def blob_service() -> FakeBlobService:
    return FakeBlobService()


@pytest.fixture()
def make_shipper(test_settings: Settings, sleeps: list[float], blob_service: FakeBlobService):
    def build(statuses: Iterable[int | Exception], settings: Settings | None = None) -> tuple[Shipper, FakeSession]:
        session = FakeSession(statuses)
        settings = settings or test_settings
        shipper = Shipper(
            settings,
            session=session,
            backup_writer=BlobBackupWriter(settings.backup_container, client_factory=blob_service.from_connection_string),
            sleep=sleeps.append,
        )
        return shipper, session

    return build


@pytest.fixture()
def make_pipeline(test_settings: Settings, make_shipper):
    def build(statuses: Iterable[int | Exception]) -> tuple[LogPipeline, FakeSession]:
        shipper, session = make_shipper(statuses)
        return LogPipeline(test_settings, shipper=shipper), session

    return build


@pytest.fixture()
def connection_error() -> Exception:
    return requests.ConnectionError("listener unreachable")
