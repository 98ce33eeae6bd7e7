import logging
from typing import Optional

from ..config import AppConfig, get_config
from .base import Responder
from .rules import RuleResponder

logger = logging.getLogger(__name__)

RESPONDER_NAMES = ("rules", "gemini")


def get_responder(config: Optional[AppConfig] = None) -> Responder:
    """Build the responder named by ``config.responder``."""
    config = config or get_config()
    name = config.responder

    if name not in RESPONDER_NAMES:
        raise ValueError(f"Unknown responder: {name!r}")

    if name == "gemini":
        if not config.llm.gemini_api_key:
            logger.warning("Gemini API key not configured, using rule-based agent")
            return RuleResponder()
        from .gemini import GeminiResponder

        return GeminiResponder(config.llm.gemini_api_key, config.llm.model)

    return RuleResponder()
