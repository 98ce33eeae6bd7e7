"""Lays out the TermPal tmux session.

    +----------------+-----------------+
    | prompt pane    |                 |
    +----------------+ workspace pane  |
    | user's shell   |                 |
    +----------------+-----------------+
"""

import logging
import os
import shutil
import subprocess
import sys

from .config import AppConfig

logger = logging.getLogger(__name__)

PROMPT_PANE_CMD = f"{sys.executable} -m termpal.cli prompt"
WORKSPACE_PANE_CMD = f"{sys.executable} -m termpal.cli workspace"


def _user_shell() -> str:
    return os.environ.get("SHELL") or "/bin/sh"


def tmux_commands(session_name: str) -> list[list[str]]:
    """The tmux invocations, in order, that build and attach the session."""
    return [
        ["tmux", "kill-session", "-t", session_name],
        ["tmux", "new-session", "-d", "-s", session_name, PROMPT_PANE_CMD],
        ["tmux", "split-window", "-v", "-t", f"{session_name}:0.0", _user_shell()],
        ["tmux", "split-window", "-h", "-t", f"{session_name}:0.0", WORKSPACE_PANE_CMD],
        ["tmux", "attach-session", "-t", session_name],
    ]


def start_tmux_session(config: AppConfig) -> bool:
    if shutil.which("tmux") is None:
        logger.error("tmux is not installed or not on PATH")
        return False

    *setup, attach = tmux_commands(config.session_name)
    for cmd in setup:
        # kill-session fails harmlessly when there is no previous session
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0 and cmd[1] != "kill-session":
            logger.error("%s failed: %s", " ".join(cmd[:2]), result.stderr.strip())
            return False

    subprocess.run(attach)
    return True
