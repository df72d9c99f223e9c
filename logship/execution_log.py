import logging


logger = logging.getLogger(__name__)


class ExecutionLog:
    def __init__(self, debug_enabled: bool = False) -> None:
        self.debug_enabled = debug_enabled
        self._entries: list[str] = []

    def add(self, message: str, level: int = logging.INFO, **context: object) -> None:
        self._entries.append(message)
        logger.log(level, message, extra=context)

    def error(self, message: str, **context: object) -> None:
        self.add(message, level=logging.ERROR, **context)

    def debug(self, message: str, **context: object) -> None:
        if not self.debug_enabled:
            return
        self.add(f"debug: {message}", level=logging.DEBUG, **context)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
