"""Fernet sealing for the API key kept in ``config.json``.

A sealed value reads ``ENC:<token>``. The key lives beside the config as
``.key``; if it is lost or replaced, sealed values read back as unset.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from . import config

logger = logging.getLogger(__name__)

SEALED_PREFIX = "ENC:"


def restrict_to_owner(path: Path) -> None:
    try:
        os.chmod(path, 0o600)
    except OSError as e:
        logger.warning("Could not restrict %s to its owner: %s", path, e)


def is_sealed(value: str) -> bool:
    return value.startswith(SEALED_PREFIX)


class SecretBox:
    """Seals and unseals config secrets with one Fernet key file."""

    def __init__(self, key_file: Path) -> None:
        self.key_file = key_file
        self._fernet: Optional[Fernet] = None

    def _fernet_for_key_file(self) -> Fernet:
        if self._fernet is not None:
            return self._fernet

        if self.key_file.exists():
            try:
                self._fernet = Fernet(self.key_file.read_bytes().strip())
                return self._fernet
            except ValueError:
                logger.warning("Key file %s is malformed, replacing it", self.key_file)

        self.key_file.parent.mkdir(parents=True, exist_ok=True)
        key = Fernet.generate_key()
        self.key_file.write_bytes(key)
        restrict_to_owner(self.key_file)
        logger.info("Created key file %s", self.key_file)
        self._fernet = Fernet(key)
        return self._fernet

    def seal(self, plaintext: str) -> str:
        if not plaintext or is_sealed(plaintext):
            return plaintext
        token = self._fernet_for_key_file().encrypt(plaintext.encode("utf-8"))
        return SEALED_PREFIX + token.decode("ascii")

    def unseal(self, value: str) -> str:
        """Plaintext passes through; an unreadable token becomes ``""``."""
        if not value or not is_sealed(value):
            return value
        try:
            token = value[len(SEALED_PREFIX):].encode("ascii")
            return self._fernet_for_key_file().decrypt(token).decode("utf-8")
        except (InvalidToken, UnicodeError):
            logger.warning("Stored API key cannot be read with %s; treating it as unset", self.key_file)
            return ""


_box: Optional[SecretBox] = None


def get_box() -> SecretBox:
    """The box for the current config directory."""
    global _box
    key_file = config._config_dir / ".key"
    if _box is None or _box.key_file != key_file:
        _box = SecretBox(key_file)
    return _box
