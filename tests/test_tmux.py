from unittest.mock import MagicMock, patch

from termpal import tmux
from termpal.config import AppConfig


def test_commands_build_three_panes_then_attach():
    cmds = tmux.tmux_commands("work")

    assert [c[1] for c in cmds] == [
        "kill-session",
        "new-session",
        "split-window",
        "split-window",
        "attach-session",
    ]
    assert cmds[1][-1] == tmux.PROMPT_PANE_CMD
    assert cmds[2][2] == "-v"
    assert cmds[3][2] == "-h"
    assert cmds[3][-1] == tmux.WORKSPACE_PANE_CMD
    assert all("work" in " ".join(c) for c in cmds)


@patch("termpal.tmux.shutil.which", return_value=None)
def test_missing_tmux_returns_false(mock_which, caplog):
    assert tmux.start_tmux_session(AppConfig()) is False
    assert "tmux is not installed" in caplog.text


@patch("termpal.tmux.subprocess.run")
@patch("termpal.tmux.shutil.which", return_value="/usr/bin/tmux")
def test_runs_commands_in_order(mock_which, mock_run):
    # kill-session fails when no previous session exists; that must not stop us
    mock_run.side_effect = [
        MagicMock(returncode=1, stderr="no server running"),
        MagicMock(returncode=0, stderr=""),
        MagicMock(returncode=0, stderr=""),
        MagicMock(returncode=0, stderr=""),
        MagicMock(returncode=0),
    ]

    assert tmux.start_tmux_session(AppConfig(session_name="termpal")) is True

    called = [c.args[0][1] for c in mock_run.call_args_list]
    assert called == ["kill-session", "new-session", "split-window", "split-window", "attach-session"]


@patch("termpal.tmux.subprocess.run")
@patch("termpal.tmux.shutil.which", return_value="/usr/bin/tmux")
def test_failed_split_aborts_before_attach(mock_which, mock_run):
    mock_run.side_effect = [
        MagicMock(returncode=0, stderr=""),
        MagicMock(returncode=0, stderr=""),
        MagicMock(returncode=1, stderr="no space for new pane"),
    ]

    assert tmux.start_tmux_session(AppConfig()) is False
    assert mock_run.call_count == 3
