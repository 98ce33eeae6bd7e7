import logging
from typing import Callable, Optional

from .agent.base import Responder
from .chats.manager import ChatsManager
from .chats.models import Conversation, Message
from .config import append_memory

logger = logging.getLogger(__name__)


class ResponderError(Exception):
    """The responder failed; no assistant message was written."""


class PromptSession:
    """One prompt pane: routes user input through the responder into a chat."""

    def __init__(
        self,
        manager: ChatsManager,
        responder: Responder,
        remember: Optional[Callable[[str, str], None]] = append_memory,
    ) -> None:
        self.manager = manager
        self.responder = responder
        self._remember = remember

    def ensure_chat(self) -> Conversation:
        current = self.manager.get_current_chat()
        if current is not None:
            return current
        return self.manager.create_new_chat()

    async def submit(self, prompt: str) -> Optional[str]:
        prompt = prompt.strip()
        if not prompt:
            return None

        chat_id = self.ensure_chat().id
        self.manager.add_message(chat_id, "user", prompt)

        try:
            reply = await self.responder.respond(prompt)
        except Exception as e:
            logger.error("Responder %s failed: %s", self.responder.name, e)
            raise ResponderError(str(e)) from e

        self.manager.add_message(chat_id, "assistant", reply)
        if self._remember is not None:
            try:
                self._remember(prompt, reply)
            except OSError as e:
                logger.warning("Failed to append to memory file: %s", e)
        return reply

    def history(self) -> list[Message]:
        current = self.manager.get_current_chat()
        return current.messages if current else []
