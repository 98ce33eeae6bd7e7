from abc import ABC, abstractmethod


class Responder(ABC):
    """Turns the latest user utterance into a reply."""

    name: str

    @abstractmethod
    async def respond(self, prompt: str) -> str:
        """Return the reply text. May raise on provider failure."""
        ...
