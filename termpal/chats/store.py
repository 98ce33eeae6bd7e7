"""Key/value backends holding one JSON document per chat."""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"


def record_key(chat_id: str) -> str:
    """Map a chat id to the key (file name) its record is stored under."""
    return f"{chat_id}{RECORD_SUFFIX}"


def chat_id_from_key(key: str) -> Optional[str]:
    """Inverse of :func:`record_key`; ``None`` for keys that are not records."""
    if not key.endswith(RECORD_SUFFIX) or key.startswith("."):
        return None
    chat_id = key[: -len(RECORD_SUFFIX)]
    return chat_id or None


class ChatStore(ABC):
    """Abstract storage for chat records.

    Every method may raise ``OSError``; the manager turns those into
    reported errors.
    """

    @abstractmethod
    def ensure(self) -> None:
        """Make sure the store exists and can be written to."""
        ...

    @abstractmethod
    def list_keys(self) -> list[str]:
        """Return all keys in enumeration order."""
        ...

    @abstractmethod
    def read(self, key: str) -> str:
        ...

    @abstractmethod
    def write(self, key: str, text: str) -> None:
        """Replace the document at *key* in one step."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*. Deleting a missing key is not an error."""
        ...


class FileChatStore(ChatStore):
    """One file per record inside a single directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def ensure(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def list_keys(self) -> list[str]:
        return sorted(p.name for p in self.directory.iterdir() if p.is_file())

    def read(self, key: str) -> str:
        return (self.directory / key).read_text(encoding="utf-8")

    def write(self, key: str, text: str) -> None:
        # Write beside the target then rename so readers never see half a record
        fd, tmp_name = tempfile.mkstemp(
            dir=self.directory, prefix=f".{key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_name, self.directory / key)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.warning("Could not clean up temp file %s", tmp_name)
            raise

    def remove(self, key: str) -> None:
        (self.directory / key).unlink(missing_ok=True)


class MemoryChatStore(ChatStore):
    """Dict-backed store used by tests and as a scratch store."""

    def __init__(self, records: Optional[dict[str, str]] = None) -> None:
        self.records: dict[str, str] = dict(records or {})

    def ensure(self) -> None:
        pass

    def list_keys(self) -> list[str]:
        return list(self.records)

    def read(self, key: str) -> str:
        try:
            return self.records[key]
        except KeyError:
            raise FileNotFoundError(key) from None

    def write(self, key: str, text: str) -> None:
        self.records[key] = text

    def remove(self, key: str) -> None:
        self.records.pop(key, None)
