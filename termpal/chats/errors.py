"""Failures raised below the ChatsManager boundary.

None of these escape a public manager operation. They are handed to the
reporter the manager was built with, which by default logs them.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger("termpal.chats")


class ChatStoreError(Exception):
    kind = "store_error"

    def __init__(self, detail: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.detail}: {self.cause}"
        return self.detail


class StorageUnavailable(ChatStoreError):
    """The store could not be created or enumerated."""

    kind = "storage_unavailable"


class RecordCorrupt(ChatStoreError):
    """A single record could not be read or parsed. It was skipped."""

    kind = "record_corrupt"

    def __init__(
        self, key: str, detail: str, cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(detail, cause)
        self.key = key


class WriteFailed(ChatStoreError):
    """A save or delete did not reach the store.

    In-memory state is kept, so memory and disk may disagree afterwards.
    """

    kind = "write_failed"

    def __init__(
        self, chat_id: str, detail: str, cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(detail, cause)
        self.chat_id = chat_id


ErrorReporter = Callable[[ChatStoreError], None]


def log_store_error(error: ChatStoreError) -> None:
    logger.error("[%s] %s", error.kind, error, exc_info=error.cause)
