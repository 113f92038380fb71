"""Tests for the wakeful command-line interface."""

import json

import pytest

from wakeful.cli.__main__ import build_parser, main


@pytest.fixture
def run(db_path, capsys):
    """Run the CLI against the temp database and return (exit_code, stdout, stderr)."""

    def _run(*argv):
        code = 0
        try:
            main(["--db", str(db_path), *argv])
        except SystemExit as e:
            code = e.code
        out, err = capsys.readouterr()
        return code, out, err

    return _run


def observe(run, *extra):
    code, out, _ = run("observe", "agent-a", "project", "Shipped the parser", "--json", *extra)
    assert code == 0
    return json.loads(out)["id"]


class TestParser:
    def test_wake_defaults(self):
        args = build_parser().parse_args(["wake", "agent-a"])
        assert args.format == "full"
        assert args.no_hot is False
        assert args.limit is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["wake", "agent-a", "--format", "xml"])


class TestCommands:
    def test_observe_then_wake(self, run):
        obs_id = observe(run, "--salience", "40")
        code, out, _ = run("wake", "agent-a", "--format", "compact")
        assert code == 0
        result = json.loads(out)
        assert [o["id"] for o in result["observations"]] == [obs_id]

    def test_observe_plain_output(self, run):
        code, out, _ = run("observe", "agent-a", "identity", "I prefer brevity")
        assert code == 0
        assert out.startswith("✓ Observation saved:")

    def test_legacy_wake_with_lens(self, run):
        observe(run)
        code, out, _ = run("wake", "agent-a", "-f", "legacy", "--lens=-project", "--no-hot")
        result = json.loads(out)
        assert result["lens"] == "-project"
        assert result["recent"] == []
        assert result["hot"] == []

    def test_edit_pin_forget(self, run):
        obs_id = observe(run)
        assert run("edit", obs_id, "--content", "Revised")[0] == 0
        assert run("pin", obs_id)[1].startswith("✓ Pinned")
        assert run("unpin", obs_id)[1].startswith("✓ Unpinned")
        assert run("forget", obs_id)[1].startswith("✓ Deleted")

    def test_forget_unknown_exits_nonzero(self, run):
        code, _, err = run("forget", "missing-id")
        assert code == 1
        assert "Observation not found" in err

    def test_supersede_and_list(self, run):
        old = observe(run)
        new = observe(run)
        code, out, _ = run("supersede", old, new)
        assert code == 0
        code, out, _ = run("superseded", "agent-a", "--json")
        listed = json.loads(out)["superseded"]
        assert [o["id"] for o in listed] == [old]
        assert listed[0]["superseded_by"] == new

    def test_self_supersession_reports_code(self, run):
        obs_id = observe(run)
        code, _, err = run("supersede", obs_id, obs_id)
        assert code == 1
        assert "SELF_SUPERSESSION" in err

    def test_observe_with_failed_supersedes(self, run):
        code, out, _ = run("observe", "agent-a", "project", "x", "--supersedes", "nope")
        assert code == 0
        assert "TARGET_NOT_FOUND" in out

    def test_search(self, run):
        observe(run)
        code, out, _ = run("search", "agent-a", "parser", "--json")
        assert json.loads(out)["count"] == 1
        code, out, _ = run("search", "agent-a", "nothing-here")
        assert "Found 0 observation(s)" in out

    def test_invalid_score(self, run):
        code, _, err = run("observe", "agent-a", "project", "x", "--salience", "150")
        assert code == 1
        assert "between 0 and 100" in err

    def test_soulfile_round_trip(self, run, tmp_path):
        soul = tmp_path / "soul.md"
        soul.write_text("## Core\nSteady.", encoding="utf-8")
        assert run("soulfile", "agent-a", "--set", str(soul))[0] == 0
        code, out, _ = run("soulfile", "agent-a")
        assert out.strip() == "## Core\nSteady."

    def test_soulfile_missing(self, run):
        code, out, _ = run("soulfile", "agent-b")
        assert "No soulfile for agent-b" in out
