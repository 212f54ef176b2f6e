import io
import json
from pathlib import Path

import pytest
import yaml
from pipegate.core.config import DriverConfig
from pipegate.core.driver import DecisionDriver, DriverState
from pipegate.core.errors import HistoryAccessError
from pipegate.decision.emitter import parse_decision
from pipegate.decision.types import DEFAULT_DECISION_REASON
from pipegate.policy.loader import compile_patterns
from pipegate.policy.types import RelevancePolicy

ZERO = "0000000000000000000000000000000000000000"


class FakeHistory:
    """In-memory history: commits, their own change lists, and range diffs."""

    def __init__(self, commits=None, diffs=None, error: Exception | None = None, on_call=None):
        self.commits = commits or {}
        self.diffs = diffs or {}
        self.error = error
        self.on_call = on_call

    def object_exists(self, repo_root, rev, *, timeout):
        return rev in self.commits

    def _maybe_fail(self):
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error

    def diff_names(self, repo_root, base, head, *, timeout):
        self._maybe_fail()
        return tuple(self.diffs[(base, head)])

    def commit_names(self, repo_root, rev, *, timeout):
        self._maybe_fail()
        return tuple(self.commits[rev])


def policy(*patterns: str) -> RelevancePolicy:
    return RelevancePolicy(patterns=compile_patterns(list(patterns)))


def config(tmp_path: Path, *, head="abc123", base=None, patterns=(r"\.js$",), **overrides) -> DriverConfig:
    values = dict(repo_root=tmp_path, head=head, base=base, policy=policy(*patterns), tool_version="test")
    values.update(overrides)
    return DriverConfig(**values)


def driver(history, **kwargs):
    stdout = io.StringIO()
    stderr = io.StringIO()
    return DecisionDriver(provider=history, stdout=stdout, stderr=stderr, **kwargs), stdout, stderr


HISTORY = FakeHistory(
    commits={"abc123": ["README.md"], "def456": ["src/app.js"]},
    diffs={("def456", "abc123"): ["src/app.js", "README.md"]},
)


class TestScenarios:
    def test_zero_base_single_commit_without_relevant_files(self, tmp_path):
        d, stdout, _ = driver(HISTORY)

        result = d.run(config(tmp_path, base=ZERO))

        assert result.outcome == "decided"
        decision = parse_decision(stdout.getvalue())
        assert decision.should_run is False
        assert decision.fallback_used is True
        assert decision.matched_paths == ()
        assert result.run.strategy == "single"

    def test_existing_base_range_diff(self, tmp_path):
        d, stdout, _ = driver(HISTORY)

        result = d.run(config(tmp_path, base="def456"))

        decision = parse_decision(stdout.getvalue())
        assert decision.should_run is True
        assert decision.matched_paths == ("src/app.js",)
        assert decision.fallback_used is False
        assert result.run.strategy == "range"
        assert result.run.changed_paths == 2

    def test_base_missing_from_shallow_clone(self, tmp_path):
        history = FakeHistory(commits={"abc123": ["src/app.js"]})
        d, stdout, _ = driver(history)

        result = d.run(config(tmp_path, base="def456"))

        assert result.outcome == "decided"
        assert parse_decision(stdout.getvalue()).fallback_used is True
        assert result.run.strategy == "single"

    def test_history_access_error_emits_default(self, tmp_path):
        history = FakeHistory(commits={"def456": []}, error=HistoryAccessError("git diff failed: fatal: bad object"))
        d, stdout, stderr = driver(history)

        result = d.run(config(tmp_path, base="def456"))

        assert result.outcome == "defaulted"
        decision = parse_decision(stdout.getvalue())
        assert decision.should_run is True
        assert decision.reason == DEFAULT_DECISION_REASON
        assert decision.failure is not None and decision.failure.stage == "extract"
        assert stderr.getvalue() == "pipegate: error: extract: git diff failed: fatal: bad object\n"
        assert result.states[-1] == DriverState.ERROR

    def test_empty_policy_never_runs(self, tmp_path):
        d, stdout, _ = driver(HISTORY)

        result = d.run(config(tmp_path, base="def456", patterns=()))

        assert result.outcome == "decided"
        assert parse_decision(stdout.getvalue()).should_run is False


class TestStateMachine:
    def test_happy_path_states(self, tmp_path):
        d, _, _ = driver(HISTORY)

        result = d.run(config(tmp_path, base="def456"))

        assert result.states == (
            DriverState.START,
            DriverState.RESOLVING,
            DriverState.EXTRACTING,
            DriverState.FILTERING,
            DriverState.SELECTING,
            DriverState.EMITTING,
            DriverState.DONE,
        )

    def test_error_after_extracting(self, tmp_path):
        d, _, _ = driver(FakeHistory(error=HistoryAccessError("boom")))

        result = d.run(config(tmp_path))

        assert result.states[-2:] == (DriverState.EXTRACTING, DriverState.ERROR)

    def test_unexpected_exception_still_defaults(self, tmp_path, monkeypatch):
        d, stdout, stderr = driver(HISTORY)

        def explode(change_set, policy):
            raise RuntimeError("unexpected")

        monkeypatch.setattr(d.relevance_filter, "filter", explode)

        result = d.run(config(tmp_path, base="def456"))

        assert result.outcome == "defaulted"
        assert parse_decision(stdout.getvalue()).should_run is True
        assert "filter: RuntimeError: unexpected" in stderr.getvalue()

    def test_deterministic(self, tmp_path):
        outputs = []
        for _ in range(3):
            d, stdout, _ = driver(HISTORY)
            d.run(config(tmp_path, base="def456"))
            outputs.append(stdout.getvalue())

        assert outputs[0] == outputs[1] == outputs[2]


class TestTimeout:
    def test_exhausted_budget_takes_error_path(self, tmp_path):
        now = [0.0]

        def advance():
            now[0] += 100.0

        # the resolver consumes the budget, extraction finds it exhausted
        history = FakeHistory(commits={"abc123": ["a.js"]})
        original = history.object_exists

        def slow_object_exists(*args, **kwargs):
            advance()
            return original(*args, **kwargs)

        history.object_exists = slow_object_exists
        d, stdout, stderr = driver(history, clock=lambda: now[0])

        result = d.run(config(tmp_path, base="def456", timeout=5.0))

        assert result.outcome == "defaulted"
        decision = parse_decision(stdout.getvalue())
        assert decision.should_run is True
        assert decision.failure is not None and decision.failure.stage == "timeout"
        assert stderr.getvalue().startswith("pipegate: error: timeout:")


class TestEmission:
    def test_writes_to_out_path(self, tmp_path):
        out = tmp_path / "out" / "decision.json"
        d, stdout, _ = driver(HISTORY)

        result = d.run(config(tmp_path, base="def456", out=out))

        assert result.outcome == "decided"
        assert stdout.getvalue() == ""
        assert json.loads(out.read_text())["shouldRun"] is True

    def test_unwritable_out_falls_back_to_stdout(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        d, stdout, stderr = driver(HISTORY)

        result = d.run(config(tmp_path, base="def456", out=blocker / "decision.json"))

        assert result.outcome == "defaulted"
        decision = parse_decision(stdout.getvalue())
        assert decision.should_run is True
        assert decision.failure is not None and decision.failure.stage == "emit"
        assert stderr.getvalue().count("pipegate: error: emit:") == 2

    def test_nothing_emittable(self, tmp_path):
        stdout = io.StringIO()
        stdout.close()
        d = DecisionDriver(provider=HISTORY, stdout=stdout, stderr=io.StringIO())

        result = d.run(config(tmp_path, base="def456"))

        assert result.outcome == "failed"
        assert result.decision.should_run is True

    def test_child_pipeline_follows_decision(self, tmp_path):
        pipeline = tmp_path / ".gitlab" / "pipeline-config.yml"
        d, _, _ = driver(HISTORY)

        d.run(config(tmp_path, base=ZERO, pipeline_out=pipeline))

        assert yaml.safe_load(pipeline.read_text()) == {"include": [{"local": ".gitlab/child-pipeline/ci-empty.yml"}]}

    def test_child_pipeline_is_full_on_error(self, tmp_path):
        pipeline = tmp_path / "pipeline-config.yml"
        d, _, _ = driver(FakeHistory(error=HistoryAccessError("boom")))

        result = d.run(config(tmp_path, pipeline_out=pipeline))

        assert result.outcome == "defaulted"
        assert "ci-full.yml" in pipeline.read_text()

    def test_unwritable_child_pipeline_leaves_single_default_document(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        d, stdout, stderr = driver(HISTORY)

        result = d.run(config(tmp_path, base="def456", pipeline_out=blocker / "pipeline.yml"))

        assert result.outcome == "failed"
        decision = parse_decision(stdout.getvalue())
        assert decision.reason == DEFAULT_DECISION_REASON
        assert decision.failure is not None and decision.failure.stage == "emit"
        assert "pipegate: error: emit:" in stderr.getvalue()

    def test_unwritable_child_pipeline_never_follows_a_computed_skip(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        d, stdout, _ = driver(HISTORY)

        d.run(config(tmp_path, base=ZERO, pipeline_out=blocker / "pipeline.yml"))

        doc = json.loads(stdout.getvalue())
        assert doc["shouldRun"] is True
        assert doc["reason"] == DEFAULT_DECISION_REASON

    def test_unwritable_summary_keeps_decision(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        d, stdout, stderr = driver(HISTORY)

        result = d.run(config(tmp_path, base=ZERO, summary_out=blocker / "summary.md"))

        assert result.outcome == "decided"
        assert result.states[-1] == DriverState.DONE
        doc = json.loads(stdout.getvalue())
        assert doc["shouldRun"] is False
        assert doc["reason"] == "no relevant paths changed"
        assert stderr.getvalue().count("pipegate: error: emit:") == 1

    def test_undecodable_path_is_written_as_original_bytes(self, tmp_path):
        out = tmp_path / "decision.json"
        history = FakeHistory(commits={"abc123": ["caf\udce9.js"]})
        d, _, stderr = driver(history)

        result = d.run(config(tmp_path, out=out))

        assert result.outcome == "decided"
        assert stderr.getvalue() == ""
        raw = out.read_bytes()
        assert b"caf\xe9.js" in raw
        decision = parse_decision(raw.decode("utf-8", "surrogateescape"))
        assert decision.matched_paths == ("caf\udce9.js",)

    def test_summary_is_appended(self, tmp_path):
        summary = tmp_path / "summary.md"
        summary.write_text("# Earlier step\n")
        d, _, _ = driver(HISTORY)

        d.run(config(tmp_path, base="def456", summary_out=summary))

        text = summary.read_text()
        assert text.startswith("# Earlier step\n## Pipeline Decision")

    @pytest.mark.parametrize("fmt", ["yaml", "env"])
    def test_other_formats(self, tmp_path, fmt):
        d, stdout, _ = driver(HISTORY)

        d.run(config(tmp_path, base="def456", output_format=fmt))

        assert parse_decision(stdout.getvalue(), fmt).matched_paths == ("src/app.js",)
