import json

import pytest

from termpal import cli, config
from termpal.session import PromptSession
from termpal.agent.rules import RuleResponder


@pytest.fixture
def session(manager, tmp_path):
    return PromptSession(manager, RuleResponder(tmp_path), remember=None)


class TestHandleCommand:
    def test_quit(self, session):
        assert cli.handle_command(session, "/quit") is None

    def test_new_and_list(self, session, manager):
        out = cli.handle_command(session, "/new")
        chat = manager.get_current_chat()
        assert out == f"Started chat {chat.id}"

        listing = cli.handle_command(session, "/list")
        assert listing.startswith(f"* {chat.id}")
        assert "New Chat" in listing

    def test_list_when_empty(self, session):
        assert cli.handle_command(session, "/list") == "No chats yet."

    def test_open_switches_and_prints_transcript(self, session, manager):
        first = manager.create_new_chat()
        manager.add_message(first.id, "user", "hello")
        manager.add_message(first.id, "assistant", "Hi!")
        manager.create_new_chat()

        out = cli.handle_command(session, f"/open {first.id}")

        assert manager.get_current_chat().id == first.id
        assert out.splitlines() == ["-- hello --", "> hello", "Hi!"]

    def test_open_unknown(self, session, manager):
        manager.create_new_chat()
        assert cli.handle_command(session, "/open nope") == "No chat with id 'nope'"

    def test_delete(self, session, manager):
        chat = manager.create_new_chat()
        assert cli.handle_command(session, f"/delete {chat.id}") == f"Deleted chat {chat.id}"
        assert cli.handle_command(session, "/delete nope") == "No chat with id 'nope'"

    def test_unknown_command_shows_help(self, session):
        assert cli.handle_command(session, "/help") == cli.HELP_TEXT


def test_chats_subcommand_lists_saved_chats(config_dir, capsys):
    chats = config_dir / "chats"
    chats.mkdir()
    (chats / "abc.json").write_text(
        json.dumps(
            {
                "id": "abc",
                "title": "Fix flaky CI",
                "messages": [],
                "createdAt": "2024-01-01T00:00:00Z",
                "updatedAt": "2024-01-01T00:00:00Z",
            }
        )
    )

    assert cli.main(["chats"]) == 0

    out = capsys.readouterr().out
    assert "abc" in out
    assert "Fix flaky CI" in out


def test_chats_subcommand_on_empty_store(config_dir, capsys):
    assert cli.main(["chats"]) == 0
    assert capsys.readouterr().out.strip() == "No chats yet."
    assert (config_dir / "workflows").is_dir()


def test_parser_defaults_to_prompt(monkeypatch, config_dir):
    calls = []
    monkeypatch.setattr(cli, "cmd_prompt", lambda args: calls.append(args.command) or 0)

    assert cli.main(["-v"]) == 0
    assert calls == ["prompt"]


@pytest.mark.asyncio
async def test_prompt_pane_round_trip(session, manager, monkeypatch, capsys):
    lines = iter(["hello", "/list", "/quit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

    await cli.run_prompt_pane(session)

    out = capsys.readouterr().out
    assert "Hello! How can I help you today?" in out
    messages = manager.get_current_chat().messages
    assert [m.role for m in messages] == ["user", "assistant"]


def test_info_subcommand_reports_layout(config_dir, capsys):
    config.bootstrap_config_dir()
    (config_dir / "workflows" / "current.sh").write_text("#!/bin/bash\n")
    (config_dir / "plugins" / "git.py").write_text("")
    config.append_memory("hi", "hello")
    config.append_memory("bye", "see you")

    assert cli.main(["info"]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0] == f"Config directory: {config_dir}"
    assert out[1] == "Responder: rules (model gemini-2.0-flash-001, Gemini key not set)"
    assert out[2:] == ["Workflows: current.sh", "Plugins: git.py", "Memory: 2 exchanges"]


def test_info_on_fresh_layout(config_dir, capsys):
    assert cli.main(["info"]) == 0

    out = capsys.readouterr().out
    assert "Workflows: (none)" in out
    assert "Memory: 0 exchanges" in out


def test_configure_stores_sealed_key_and_keeps_other_fields(config_dir, capsys):
    config.update_config(config.AppConfig(session_name="work"))

    assert cli.main(["configure", "--responder", "gemini", "--gemini-key", "k-123"]) == 0

    assert capsys.readouterr().out.strip() == "Responder: gemini, model: gemini-2.0-flash-001"
    raw = json.loads((config_dir / "config.json").read_text())
    assert raw["responder"] == "gemini"
    assert raw["session_name"] == "work"
    assert raw["llm"]["gemini_api_key"].startswith("ENC:")
    assert config.load_config().llm.gemini_api_key == "k-123"


def test_configure_rejects_unknown_responder(config_dir, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["configure", "--responder", "gpt"])

    assert exc.value.code == 2
    assert "invalid choice" in capsys.readouterr().err
    assert config.load_config().responder == "rules"
