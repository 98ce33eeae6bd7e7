"""TermPal command line.

    termpal               prompt pane (default)
    termpal workspace     watch the generated workflow script
    termpal chats         print saved chats and exit
    termpal serve         local HTTP API
    termpal launch        tmux session with prompt, shell and workspace panes
    termpal info          config directory, responder, workflows and plugins
    termpal configure     change the responder, Gemini key or model
"""

import argparse
import asyncio
import logging
import sys
import time
from typing import Optional

from .agent.registry import RESPONDER_NAMES, get_responder
from .chats.manager import ChatsManager
from .chats.models import Conversation
from .chats.store import FileChatStore
from .config import (
    bootstrap_config_dir,
    chats_dir,
    get_config,
    list_plugins,
    list_workflows,
    load_memory,
    update_config,
    workflows_dir,
)
from .session import PromptSession, ResponderError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

PROMPT = "> "
HELP_TEXT = """\
/new            start a new chat
/list           list saved chats
/open <id>      switch to a chat
/delete <id>    delete a chat
/quit           exit"""


def format_chat_line(chat: Conversation, current_id: Optional[str] = None) -> str:
    marker = "*" if chat.id == current_id else " "
    updated = chat.updated_at.astimezone().strftime("%Y-%m-%d %H:%M")
    return f"{marker} {chat.id}  {updated}  {chat.title}"


def format_listing(manager: ChatsManager) -> str:
    chats = manager.get_all_chats()
    if not chats:
        return "No chats yet."
    current = manager.get_current_chat()
    current_id = current.id if current else None
    return "\n".join(format_chat_line(c, current_id) for c in chats)


def format_transcript(chat: Conversation) -> str:
    lines = [f"-- {chat.title} --"]
    for m in chat.messages:
        lines.append(f"> {m.content}" if m.role == "user" else m.content)
    return "\n".join(lines)


def handle_command(session: PromptSession, line: str) -> Optional[str]:
    """Run a slash command. Returns the text to print, or ``None`` to quit."""
    manager = session.manager
    name, _, arg = line[1:].partition(" ")
    arg = arg.strip()

    if name in ("quit", "exit", "q"):
        return None
    if name == "new":
        chat = manager.create_new_chat()
        return f"Started chat {chat.id}"
    if name == "list":
        return format_listing(manager)
    if name == "open":
        manager.set_current_chat(arg)
        current = manager.get_current_chat()
        if current is None or current.id != arg:
            return f"No chat with id {arg!r}"
        return format_transcript(current)
    if name == "delete":
        before = len(manager.get_all_chats())
        manager.delete_chat(arg)
        if len(manager.get_all_chats()) == before:
            return f"No chat with id {arg!r}"
        return f"Deleted chat {arg}"
    return HELP_TEXT


async def run_prompt_pane(session: PromptSession) -> None:
    print("TermPal Prompt (type your request, /help for commands):")
    current = session.manager.get_current_chat()
    if current is not None:
        print(format_transcript(current))

    while True:
        try:
            line = await asyncio.to_thread(input, PROMPT)
        except (EOFError, KeyboardInterrupt):
            print()
            return

        line = line.strip()
        if not line:
            continue
        if line.startswith("/"):
            output = handle_command(session, line)
            if output is None:
                return
            print(output)
            continue

        try:
            reply = await session.submit(line)
        except ResponderError as e:
            print(f"[error] {e}", file=sys.stderr)
            continue
        if reply is not None:
            print(reply)


def _open_manager() -> ChatsManager:
    return ChatsManager(FileChatStore(chats_dir()))


def cmd_prompt(args: argparse.Namespace) -> int:
    manager = _open_manager()
    chats = manager.get_all_chats()
    if chats and not args.new:
        manager.set_current_chat(chats[0].id)
    else:
        manager.create_new_chat()
    session = PromptSession(manager, get_responder(get_config()))
    asyncio.run(run_prompt_pane(session))
    return 0


def cmd_workspace(args: argparse.Namespace) -> int:
    from .agent.rules import WORKFLOW_FILENAME

    workflow_file = workflows_dir() / WORKFLOW_FILENAME
    print("Workspace (Current Workflow Script):")
    last: Optional[str] = None
    try:
        while True:
            script = workflow_file.read_text(encoding="utf-8") if workflow_file.exists() else ""
            if script != last:
                print(script or "No workflow generated yet.")
                print("-" * 40)
                last = script
            time.sleep(args.interval)
    except KeyboardInterrupt:
        return 0


def cmd_chats(args: argparse.Namespace) -> int:
    print(format_listing(_open_manager()))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("termpal.main:app", host=args.host, port=args.port)
    return 0


def cmd_launch(args: argparse.Namespace) -> int:
    from .tmux import start_tmux_session

    return 0 if start_tmux_session(get_config()) else 1


def cmd_info(args: argparse.Namespace) -> int:
    config = get_config()
    exchanges = sum(1 for line in load_memory().splitlines() if line.startswith("User: "))
    key_state = "set" if config.llm.gemini_api_key else "not set"

    print(f"Config directory: {chats_dir().parent}")
    print(f"Responder: {config.responder} (model {config.llm.model}, Gemini key {key_state})")
    print(f"Workflows: {', '.join(list_workflows()) or '(none)'}")
    print(f"Plugins: {', '.join(list_plugins()) or '(none)'}")
    print(f"Memory: {exchanges} exchanges")
    return 0


def cmd_configure(args: argparse.Namespace) -> int:
    config = get_config().model_copy(deep=True)
    if args.responder is not None:
        config.responder = args.responder
    if args.gemini_key is not None:
        config.llm.gemini_api_key = args.gemini_key
    if args.model is not None:
        config.llm.model = args.model

    update_config(config)
    print(f"Responder: {config.responder}, model: {config.llm.model}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="termpal", description="Terminal assistant shell")
    parser.add_argument("-v", "--verbose", action="store_true", help="log at INFO level")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("prompt", help="interactive prompt pane")
    p.add_argument("--new", action="store_true", help="start in a fresh chat")
    p.set_defaults(func=cmd_prompt)

    p = sub.add_parser("workspace", help="show the current workflow script")
    p.add_argument("--interval", type=float, default=1.0)
    p.set_defaults(func=cmd_workspace)

    p = sub.add_parser("chats", help="list saved chats")
    p.set_defaults(func=cmd_chats)

    p = sub.add_parser("serve", help="run the local HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8765)
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("launch", help="start the tmux session")
    p.set_defaults(func=cmd_launch)

    p = sub.add_parser("info", help="show configuration and the workspace layout")
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("configure", help="change the stored configuration")
    p.add_argument("--responder", choices=RESPONDER_NAMES)
    p.add_argument("--gemini-key", dest="gemini_key")
    p.add_argument("--model")
    p.set_defaults(func=cmd_configure)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args([*argv, "prompt"])

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    bootstrap_config_dir()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
