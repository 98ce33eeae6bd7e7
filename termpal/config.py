import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError, model_validator

logger = logging.getLogger(__name__)

# Older config.json files kept the Gemini key at the top level
LEGACY_GEMINI_KEY = "geminiKey"


class LLMConfig(BaseModel):
    gemini_api_key: str = ""
    model: str = "gemini-2.0-flash-001"


class AppConfig(BaseModel):
    llm: LLMConfig = LLMConfig()
    responder: str = "rules"  # "rules" | "gemini"
    session_name: str = "termpal"

    @model_validator(mode="before")
    @classmethod
    def _adopt_legacy_key(cls, data):
        if not isinstance(data, dict) or LEGACY_GEMINI_KEY not in data:
            return data
        data = dict(data)
        legacy = data.pop(LEGACY_GEMINI_KEY)
        if not isinstance(data.get("llm", {}), dict):
            return data
        llm = dict(data.get("llm") or {})
        if legacy and not llm.get("gemini_api_key"):
            llm["gemini_api_key"] = legacy
        data["llm"] = llm
        return data


_config_dir = Path(os.environ.get("TERMPAL_CONFIG_DIR", Path.home() / ".termpal"))


def _config_file() -> Path:
    return _config_dir / "config.json"


def chats_dir() -> Path:
    return _config_dir / "chats"


def workflows_dir() -> Path:
    return _config_dir / "workflows"


def plugins_dir() -> Path:
    return _config_dir / "plugins"


def memory_file() -> Path:
    return _config_dir / "memory.txt"


def _stored_key(data: dict) -> str:
    llm = data.get("llm")
    if not isinstance(llm, dict) or not isinstance(llm.get("gemini_api_key"), str):
        return ""
    return llm["gemini_api_key"]


def _unseal_stored_key(data: dict) -> bool:
    """Unseal ``llm.gemini_api_key`` in place.

    Returns True when the file still holds a plaintext or top-level key and
    should be re-saved in the nested, sealed form.
    """
    from .crypto import get_box, is_sealed

    stored = _stored_key(data)
    if stored:
        data["llm"]["gemini_api_key"] = get_box().unseal(stored)
    return bool(stored and not is_sealed(stored)) or LEGACY_GEMINI_KEY in data


def _ensure_config_dir() -> None:
    _config_dir.mkdir(parents=True, exist_ok=True)


def bootstrap_config_dir() -> Path:
    """Create the ~/.termpal layout: workflows/, plugins/, chats/, config.json, memory.txt."""
    _ensure_config_dir()
    for directory in (workflows_dir(), plugins_dir(), chats_dir()):
        directory.mkdir(parents=True, exist_ok=True)
    for path in (_config_file(), memory_file()):
        path.touch(exist_ok=True)
    return _config_dir


def load_config() -> AppConfig:
    _ensure_config_dir()
    if not _config_file().exists():
        return AppConfig()

    raw = _config_file().read_text(encoding="utf-8")
    if not raw.strip():
        return AppConfig()

    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("config root must be an object")
        reseal = _unseal_stored_key(data)
        config = AppConfig.model_validate(data)
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning("Unreadable config.json, resetting to defaults: %s", e)
        config = AppConfig()
        save_config(config)
        return config

    if reseal:
        logger.info("Sealing plaintext API key in config.json")
        save_config(config)

    return config


def save_config(config: AppConfig) -> None:
    from .crypto import get_box, restrict_to_owner

    _ensure_config_dir()
    data = config.model_dump()
    data["llm"]["gemini_api_key"] = get_box().seal(config.llm.gemini_api_key)
    _config_file().write_text(
        json.dumps(data, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    restrict_to_owner(_config_file())


def list_workflows() -> list[str]:
    if not workflows_dir().exists():
        return []
    return sorted(p.name for p in workflows_dir().iterdir())


def list_plugins() -> list[str]:
    if not plugins_dir().exists():
        return []
    return sorted(p.name for p in plugins_dir().iterdir())


def load_memory() -> str:
    if memory_file().exists():
        return memory_file().read_text(encoding="utf-8")
    return ""


def append_memory(user_text: str, agent_text: str) -> None:
    _ensure_config_dir()
    with memory_file().open("a", encoding="utf-8") as fh:
        fh.write(f"User: {user_text}\nAgent: {agent_text}\n")


_current_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    global _current_config
    if _current_config is None:
        _current_config = load_config()
    return _current_config


def update_config(config: AppConfig) -> AppConfig:
    global _current_config
    save_config(config)
    _current_config = config
    return _current_config
