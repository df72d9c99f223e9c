from collections.abc import Callable
import logging
import uuid

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobServiceClient


logger = logging.getLogger(__name__)

BACKUP_PREFIX = "logsbackup"


class BackupError(RuntimeError):
    pass


def new_backup_blob_name(prefix: str = BACKUP_PREFIX) -> str:
    return f"{prefix}-{uuid.uuid4().int}"


class BlobBackupWriter:
    def __init__(
        self,
        container: str = BACKUP_PREFIX,
        client_factory: Callable[[str], BlobServiceClient] = BlobServiceClient.from_connection_string,
    ) -> None:
        self.container = container
        self.client_factory = client_factory

    def persist(self, raw_bytes: bytes, connection: str) -> str:
        # ValueError from an unparseable connection string propagates.
        service_client = self.client_factory(connection)
        blob_name = new_backup_blob_name()
        try:
            blob_client = service_client.get_blob_client(container=self.container, blob=blob_name)
            blob_client.upload_blob(raw_bytes)
        except AzureError as exc:
            raise BackupError(f"upload of {blob_name} to {self.container} failed: {exc}") from exc

        logger.info(
            "backup blob written",
            extra={"container": self.container, "blob_name": blob_name, "size_bytes": len(raw_bytes)},
        )
        return blob_name
