"""Tests for the transcript adapter and export."""

import json

import pytest

from pseudoshell.command_handler import LineKind, PORTFOLIO_WHOAMI, command_line, output
from pseudoshell.puzzle import ESCALATION_SECRET, FINAL_FLAG, GREETING, PuzzleShell, PuzzleStage
from pseudoshell.storage import MemoryStore
from pseudoshell.transcript import Transcript, export_as_json, export_as_text


@pytest.fixture
def portfolio(portfolio_shell):
    return Transcript(portfolio_shell)


@pytest.fixture
def puzzle(puzzle_shell):
    return Transcript(puzzle_shell)


class TestIntro:
    """Tests for the startup transcript."""

    def test_portfolio_intro(self, portfolio):
        assert portfolio.lines[0] == command_line("┌──(yyerf㉿portfolio)-[whoami]")
        assert portfolio.lines[1] == command_line("└─$ whoami")
        assert [line.text for line in portfolio.lines[2:]] == list(PORTFOLIO_WHOAMI)

    def test_puzzle_intro(self, puzzle):
        assert puzzle.lines == [output(GREETING)]

    def test_intro_is_not_history(self, portfolio):
        assert portfolio.state.history == []


class TestSubmit:
    """Tests for echoing commands and appending output."""

    def test_echo_then_output(self, portfolio):
        new_lines = portfolio.submit("pwd")
        assert new_lines == [
            command_line("┌──(yyerf㉿portfolio)-[~]"),
            command_line("└─$ pwd"),
            output("~"),
        ]
        assert portfolio.lines[-3:] == new_lines

    def test_prompt_uses_cwd_before_command(self, portfolio):
        first = portfolio.submit("cd projects")
        assert first[0].text.endswith("-[~]")
        second = portfolio.submit("pwd")
        assert second[0].text.endswith("-[~/projects]")

    def test_echo_is_trimmed(self, portfolio):
        new_lines = portfolio.submit("   ls   ")
        assert new_lines[1].text == "└─$ ls"

    def test_blank_submit(self, portfolio):
        before = list(portfolio.lines)
        assert portfolio.submit("   ") == []
        assert portfolio.lines == before

    def test_errors_follow_echo(self, portfolio):
        new_lines = portfolio.submit("cd nowhere")
        assert new_lines[-1].kind is LineKind.ERROR

    def test_clear_empties_transcript(self, portfolio):
        portfolio.submit("ls")
        assert portfolio.submit("clear") == []
        assert portfolio.lines == []
        assert portfolio.last_result.clear is True
        assert portfolio.state.history == ["ls", "clear"]

    def test_lines_after_clear(self, portfolio):
        portfolio.submit("clear")
        portfolio.submit("pwd")
        assert [line.text for line in portfolio.lines] == [
            "┌──(yyerf㉿portfolio)-[~]",
            "└─$ pwd",
            "~",
        ]


class TestPuzzleTranscript:
    """Tests for password handling in the transcript."""

    def test_sudo_is_echoed(self, puzzle):
        new_lines = puzzle.submit("sudo su")
        assert new_lines[1].text == "└─$ sudo su"
        assert new_lines[-1] == command_line("[sudo] password for yyerf:")

    def test_password_never_shown(self, puzzle):
        puzzle.submit("sudo su")
        wrong = puzzle.submit("letmein")
        right = puzzle.submit(ESCALATION_SECRET)
        assert [line.kind for line in wrong] == [LineKind.ERROR]
        assert right[0].kind is LineKind.ROOT_ANNOUNCE
        for line in puzzle.lines:
            assert "letmein" not in line.text
            assert ESCALATION_SECRET not in line.text

    def test_root_prompt_after_escalation(self, puzzle):
        puzzle.submit("sudo su")
        puzzle.submit(ESCALATION_SECRET)
        new_lines = puzzle.submit("ls")
        assert new_lines[0].text == "┌──(root㉿yyerf)-[~]"

    def test_interrupt_cancels_prompt(self, puzzle):
        puzzle.submit("sudo su")
        line = puzzle.interrupt()
        assert line == command_line("^C")
        assert puzzle.lines[-1] == line
        assert puzzle.state.awaiting_secret is False
        assert puzzle.submit("help")[1].text == "└─$ help"


class TestRecallAndCompletion:
    """Tests for history recall and TAB completion through the transcript."""

    def test_previous_and_next(self, portfolio):
        portfolio.submit("ls")
        portfolio.submit("pwd")
        assert portfolio.previous() == "pwd"
        assert portfolio.previous() == "ls"
        assert portfolio.next() == "pwd"
        assert portfolio.next() == ""

    def test_complete_command(self, portfolio):
        assert portfolio.complete("who") == "whoami"

    def test_complete_path(self, portfolio):
        assert portfolio.complete("cd proj") == "cd projects/"

    def test_hidden_file_not_offered_to_normal_user(self, puzzle):
        assert puzzle.complete("cat re") == "cat readme.txt"
        assert puzzle.complete("cat .") == "cat ."

    def test_hidden_file_not_offered_before_listing(self, puzzle):
        puzzle.submit("sudo su")
        puzzle.submit(ESCALATION_SECRET)
        assert puzzle.complete("cat .") == "cat ."

    def test_hidden_file_offered_after_listing(self, puzzle):
        puzzle.submit("sudo su")
        puzzle.submit(ESCALATION_SECRET)
        puzzle.submit("ls -a")
        assert puzzle.complete("cat .") == "cat .shadow"

    def test_completion_leaves_stage_alone(self, puzzle):
        puzzle.submit("sudo su")
        puzzle.submit(ESCALATION_SECRET)
        puzzle.complete("cat .")
        assert puzzle.state.puzzle.stage is PuzzleStage.ROOTED
        assert not puzzle.state.puzzle.revealed_hidden


class TestReplay:
    """Tests for starting over."""

    def test_replay_resets_state(self, puzzle):
        puzzle.submit("sudo su")
        puzzle.submit(ESCALATION_SECRET)
        puzzle.submit(f"submit {FINAL_FLAG}")
        puzzle.replay()
        assert puzzle.lines == [output(GREETING)]
        assert puzzle.state.puzzle.stage is PuzzleStage.GREETING
        assert not puzzle.state.is_root
        assert puzzle.state.cwd == "~"

    def test_replay_keeps_history(self, portfolio):
        portfolio.submit("cd projects")
        portfolio.replay()
        assert portfolio.state.history == ["cd projects"]
        assert portfolio.state.cwd == "~"

    def test_replay_reloads_best(self, puzzle_shell, clock):
        transcript = Transcript(puzzle_shell)
        transcript.submit("help")
        clock.advance(2000)
        transcript.submit(f"submit {FINAL_FLAG}")
        transcript.replay()
        assert transcript.state.puzzle.best_elapsed_ms == 2000


class TestExport:
    """Tests for transcript export."""

    def test_text_metadata(self, puzzle):
        puzzle.submit("nope")
        text = export_as_text(puzzle)
        assert "Shell: puzzle" in text
        assert "Commands: 1" in text
        assert "! Unknown command" in text

    def test_text_without_metadata(self, portfolio):
        text = export_as_text(portfolio, include_metadata=False)
        assert text.startswith("┌──(yyerf㉿portfolio)-[whoami]\n")
        assert "Shell:" not in text

    def test_json(self, portfolio):
        portfolio.submit("pwd")
        data = json.loads(export_as_json(portfolio))
        assert data["shell"] == "portfolio"
        assert data["cwd"] == "~"
        assert data["privilege"] == "normal"
        assert data["history"] == ["pwd"]
        assert data["lines"][-1] == {"kind": "output", "text": "~"}
        assert data["started_at"].endswith("Z")

    def test_json_omits_password_attempts(self, puzzle):
        puzzle.submit("sudo su")
        puzzle.submit("wrongpass123")
        puzzle.submit(ESCALATION_SECRET)
        exported = export_as_json(puzzle)
        assert json.loads(exported)["history"] == ["sudo su"]
        assert "wrongpass123" not in exported
        assert json.dumps(ESCALATION_SECRET, ensure_ascii=False)[1:-1] not in exported

    def test_json_compact(self, portfolio):
        compact = export_as_json(portfolio, pretty=False)
        assert "\n" not in compact

    def test_existing_state(self, puzzle_shell):
        state = puzzle_shell.new_session()
        transcript = Transcript(puzzle_shell, state)
        assert transcript.state is state


class TestSolvedStore:
    """The transcript drives the same persistence as the shell."""

    def test_best_time_written(self, clock):
        store = MemoryStore()
        transcript = Transcript(PuzzleShell(store=store, clock=clock))
        transcript.submit("ls")
        clock.advance(1500)
        transcript.submit(f"submit {FINAL_FLAG}")
        assert store.get("ctf_best_time_ms") == "1500.0"
