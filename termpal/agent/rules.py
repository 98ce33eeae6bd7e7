"""Keyword-matching prototype agent.

Recognised requests also leave a bash script in
``<config_dir>/workflows/current.sh`` for the workspace pane to show.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from ..config import workflows_dir
from .base import Responder

logger = logging.getLogger(__name__)

WORKFLOW_FILENAME = "current.sh"

_FALLBACK_REPLY = "Sorry, I don't know how to do that yet."

_DEPLOY_SCRIPT = "#!/bin/bash\nkubectl apply -f manifest.yaml"

_GIT_BRANCH_SCRIPT = """\
#!/bin/bash
git pull origin main
git checkout -b new-branch
git add .
git commit -m "Your commit message"
git push origin new-branch"""

_FALLBACK_SCRIPT = f'#!/bin/bash\necho "{_FALLBACK_REPLY}"'

# (pattern, script, reply) checked in order; first match wins
_RULES: list[tuple[re.Pattern, str, str]] = [
    (
        re.compile(r"kubernetes|deploy", re.IGNORECASE),
        _DEPLOY_SCRIPT,
        "Generated script to deploy manifest.yaml to Kubernetes.",
    ),
    (
        re.compile(r"git.*branch", re.IGNORECASE),
        _GIT_BRANCH_SCRIPT,
        "Generated git workflow script.",
    ),
    (
        re.compile(r"hello", re.IGNORECASE),
        "",
        "Hello! How can I help you today?",
    ),
]


def match_rule(prompt: str) -> tuple[str, str]:
    """Return ``(script, reply)`` for *prompt*; script is empty for chit-chat."""
    for pattern, script, reply in _RULES:
        if pattern.search(prompt):
            return script, reply
    return _FALLBACK_SCRIPT, _FALLBACK_REPLY


class RuleResponder(Responder):
    name = "rules"

    def __init__(self, workflow_dir: Optional[Path] = None) -> None:
        self.workflow_dir = workflow_dir or workflows_dir()

    @property
    def workflow_file(self) -> Path:
        return self.workflow_dir / WORKFLOW_FILENAME

    async def respond(self, prompt: str) -> str:
        script, reply = match_rule(prompt)
        if script:
            self.workflow_dir.mkdir(parents=True, exist_ok=True)
            self.workflow_file.write_text(script, encoding="utf-8")
            logger.info("Wrote workflow script to %s", self.workflow_file)
        return reply
