import json
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional

from pydantic import ValidationError

from .errors import (
    ErrorReporter,
    RecordCorrupt,
    StorageUnavailable,
    WriteFailed,
    log_store_error,
)
from .models import Conversation, Message, Role, derive_title, utcnow
from .store import ChatStore, chat_id_from_key, record_key

logger = logging.getLogger(__name__)


def new_chat_id() -> str:
    return uuid.uuid4().hex[:12]


class ChatsManager:
    """In-memory chat listing mirrored to a :class:`ChatStore`.

    Construction prepares the store and loads every record. Afterwards each
    mutation updates memory first and then writes (or removes) exactly one
    record. Storage failures are passed to ``reporter`` and never raised;
    after a reported write failure memory and disk may disagree.

    Also tracks the "current" chat. Nothing is selected after a load.

    Assumes one writer per store. There is no locking: two processes sharing
    a directory overwrite each other's records and their listings drift.
    """

    def __init__(
        self,
        store: ChatStore,
        reporter: ErrorReporter = log_store_error,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = new_chat_id,
    ) -> None:
        self._store = store
        self._report = reporter
        self._clock = clock
        self._id_factory = id_factory
        self._chats: list[Conversation] = []
        self._current_chat_id: Optional[str] = None

        self._initialize_storage()
        self.load()

    # ---- Storage ----

    def _initialize_storage(self) -> None:
        try:
            self._store.ensure()
        except OSError as e:
            self._report(
                StorageUnavailable("Failed to create chat storage directory", e)
            )

    def load(self) -> None:
        """Replace the listing with what is on disk, newest update first."""
        try:
            keys = self._store.list_keys()
        except OSError as e:
            self._report(StorageUnavailable("Error reading chat directory", e))
            self._chats = []
            return

        chats: list[Conversation] = []
        for key in keys:
            chat_id = chat_id_from_key(key)
            if chat_id is None:
                continue
            try:
                chat = Conversation.model_validate(json.loads(self._store.read(key)))
            except (OSError, ValueError, ValidationError) as e:
                self._report(RecordCorrupt(key, f"Error loading chat file {key}", e))
                continue
            if chat.id != chat_id:
                self._report(RecordCorrupt(key, "Record id does not match file name"))
                continue
            chats.append(chat)

        # list.sort is stable: equal timestamps keep enumeration order
        chats.sort(key=lambda c: c.updated_at, reverse=True)
        self._chats = chats
        logger.info("Loaded %d chats", len(chats))

    def _save(self, chat: Conversation) -> None:
        key = record_key(chat.id)
        try:
            text = json.dumps(chat.to_record(), indent=2, ensure_ascii=False)
            self._store.write(key, text)
        except (OSError, TypeError, ValueError) as e:
            self._report(WriteFailed(chat.id, f"Error saving chat {chat.id}", e))

    def _remove(self, chat_id: str) -> None:
        key = record_key(chat_id)
        try:
            self._store.remove(key)
        except OSError as e:
            self._report(WriteFailed(chat_id, f"Error deleting chat file {key}", e))

    def _find(self, chat_id: str) -> Optional[Conversation]:
        for chat in self._chats:
            if chat.id == chat_id:
                return chat
        return None

    def _allocate_id(self) -> str:
        chat_id = self._id_factory()
        while self._find(chat_id) is not None:
            chat_id = self._id_factory()
        return chat_id

    # ---- Public API ----

    def create_new_chat(self) -> Conversation:
        now = self._clock()
        chat = Conversation(
            id=self._allocate_id(), messages=[], created_at=now, updated_at=now
        )
        self._chats.insert(0, chat)
        self._current_chat_id = chat.id
        self._save(chat)
        return chat.model_copy(deep=True)

    def get_current_chat(self) -> Optional[Conversation]:
        if self._current_chat_id is None:
            return None
        chat = self._find(self._current_chat_id)
        if chat is None:
            return None
        return chat.model_copy(deep=True)

    def add_message(self, chat_id: str, role: Role, content: str) -> None:
        chat = self._find(chat_id)
        if chat is None:
            return

        now = self._clock()
        chat.messages.append(Message(role=role, content=content, timestamp=now))
        chat.updated_at = now

        # Only the very first message can name the chat, and only a user one
        if len(chat.messages) == 1 and role == "user":
            chat.title = derive_title(content)

        self._save(chat)

    def get_all_chats(self) -> list[Conversation]:
        return [chat.model_copy(deep=True) for chat in self._chats]

    def delete_chat(self, chat_id: str) -> None:
        chat = self._find(chat_id)
        if chat is None:
            return

        self._chats.remove(chat)
        self._remove(chat_id)

        if self._current_chat_id == chat_id:
            self._current_chat_id = self._chats[0].id if self._chats else None

    def set_current_chat(self, chat_id: str) -> None:
        if self._find(chat_id) is not None:
            self._current_chat_id = chat_id
