"""Simple tests for pipegate CLI commands."""

import json
from unittest.mock import patch

import pytest
from pipegate.cli.exitcodes import (
    EXIT_DEFAULT_DECISION,
    EXIT_NO_DECISION,
    EXIT_OK,
    exit_code_from_result,
)
from pipegate.cli.main import build_parser, main
from pipegate.core.driver import DriverResult, DriverState
from pipegate.decision.types import PipelineDecision, RunInfo, default_decision


def create_result(outcome="decided", decision=None) -> DriverResult:
    decision = decision or PipelineDecision(
        should_run=False, matched_paths=(), reason="no relevant paths changed", fallback_used=False
    )
    return DriverResult(
        outcome=outcome,
        decision=decision,
        run=RunInfo(repo_root="/repo", head="HEAD"),
        states=(DriverState.START, DriverState.DONE),
    )


class TestExitCodes:
    def test_decided(self):
        assert exit_code_from_result(create_result("decided")) == EXIT_OK

    def test_defaulted(self):
        d = default_decision(stage="extract", message="x")
        assert exit_code_from_result(create_result("defaulted", d)) == EXIT_DEFAULT_DECISION

    def test_failed(self):
        assert exit_code_from_result(create_result("failed")) == EXIT_NO_DECISION


class TestCLIMain:
    """Tests for main CLI entry point and command routing."""

    def test_decide_passes_revisions_and_patterns(self, tmp_path):
        with patch("pipegate.cli.decide.DecisionDriver.run", return_value=create_result()) as run:
            exit_code = main(
                ["decide", str(tmp_path), "--base", "def456", "--head", "abc123", "--pattern", r"\.js$", "-q"]
            )

        assert exit_code == EXIT_OK
        cfg = run.call_args.args[0]
        assert cfg.base == "def456"
        assert cfg.head == "abc123"
        assert [p.source for p in cfg.policy.patterns] == [r"\.js$"]
        assert cfg.out is None
        assert cfg.output_format == "json"

    def test_decide_reads_ci_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CI_COMMIT_BEFORE_SHA", "0" * 40)
        monkeypatch.setenv("CI_COMMIT_SHA", "feedface")
        monkeypatch.delenv("PIPEGATE_BASE", raising=False)
        monkeypatch.delenv("PIPEGATE_HEAD", raising=False)

        with patch("pipegate.cli.decide.DecisionDriver.run", return_value=create_result()) as run:
            main(["decide", str(tmp_path), "--pattern", "x"])

        cfg = run.call_args.args[0]
        assert cfg.base == "0" * 40
        assert cfg.head == "feedface"

    def test_decide_exit_code_1_on_default_decision(self, tmp_path):
        result = create_result("defaulted", default_decision(stage="extract", message="x"))

        with patch("pipegate.cli.decide.DecisionDriver.run", return_value=result):
            exit_code = main(["decide", str(tmp_path), "--pattern", "x"])

        assert exit_code == EXIT_DEFAULT_DECISION

    def test_decide_without_policy_is_a_config_error(self, tmp_path, capsys):
        with patch("pipegate.cli.decide.DecisionDriver.run") as run:
            exit_code = main(["decide", str(tmp_path)])

        assert exit_code == EXIT_NO_DECISION
        run.assert_not_called()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("pipegate: error: policy: no relevance policy")

    def test_decide_invalid_pattern(self, tmp_path, capsys):
        exit_code = main(["decide", str(tmp_path), "--pattern", "("])

        assert exit_code == EXIT_NO_DECISION
        assert "pattern #0" in capsys.readouterr().err

    def test_decide_uses_repo_policy_file(self, tmp_path):
        (tmp_path / ".pipegate.yml").write_text("patterns: ['\\.sh$']\n")

        with patch("pipegate.cli.decide.DecisionDriver.run", return_value=create_result()) as run:
            main(["decide", str(tmp_path), "--pattern", r"\.js$"])

        cfg = run.call_args.args[0]
        assert [p.source for p in cfg.policy.patterns] == [r"\.sh$", r"\.js$"]
        assert cfg.policy.source == str(tmp_path / ".pipegate.yml")

    def test_verdict_goes_to_stderr(self, tmp_path, capsys):
        with patch("pipegate.cli.decide.DecisionDriver.run", return_value=create_result()):
            main(["decide", str(tmp_path), "--pattern", "x"])

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "- skip: no relevant paths changed\n"

    def test_timeout_must_be_positive(self, tmp_path):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["decide", str(tmp_path), "--timeout", "0"])

    def test_quiet_and_verbose_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["decide", "-q", "-v"])

    def test_unexpected_error_is_reported(self, tmp_path, capsys):
        with patch("pipegate.cli.decide.DecisionDriver.run", side_effect=RuntimeError("kaboom")):
            exit_code = main(["decide", str(tmp_path), "--pattern", "x"])

        assert exit_code == EXIT_NO_DECISION
        assert "pipegate: error: kaboom" in capsys.readouterr().err


class TestPolicyCheck:
    def test_valid_policy(self, tmp_path, capsys):
        (tmp_path / ".pipegate.yml").write_text(
            "patterns: ['\\.js$', 'glob:docs/**']\nworkflows: {full: ci/full.yml}\n"
        )

        exit_code = main(["policy", "check", str(tmp_path), "--try", "src/app.js", "--try", "README.md"])

        out = capsys.readouterr().out
        assert exit_code == EXIT_OK
        assert "#0 regex \\.js$" in out
        assert "#1 glob  docs/**" in out
        assert "full:  ci/full.yml" in out
        assert "✓ src/app.js" in out
        assert "- README.md" in out

    def test_invalid_policy(self, tmp_path, capsys):
        policy = tmp_path / "p.json"
        policy.write_text(json.dumps({"patterns": ["[oops"]}))

        exit_code = main(["policy", "check", str(tmp_path), "--policy", str(policy)])

        assert exit_code == EXIT_NO_DECISION
        assert "p.json" in capsys.readouterr().err

    def test_empty_policy_is_reported(self, tmp_path, capsys):
        (tmp_path / ".pipegate.yml").write_text("patterns: []\n")

        assert main(["policy", "check", str(tmp_path)]) == EXIT_OK
        assert "patterns: none" in capsys.readouterr().out
