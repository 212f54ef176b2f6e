# SPDX-License-Identifier: AGPL-3.0-only

from typing import Literal

from pipegate.decision.types import PipelineDecision, RunInfo

Verbosity = Literal["quiet", "normal", "verbose"]


class TextDecisionRenderer:
    """
    Human-readable verdict for the CI log. Pure rendering: does not sort or mutate.

    Verbosity levels:
    - quiet: one-line verdict only
    - normal: verdict + reason
    - verbose: everything (run context, matched paths, failure)
    """

    def __init__(self, verbosity: Verbosity = "normal"):
        self.verbosity = verbosity

    def render(self, decision: PipelineDecision, run: RunInfo | None = None) -> str:
        if self.verbosity == "quiet":
            return self._render_quiet(decision)
        elif self.verbosity == "verbose":
            return self._render_verbose(decision, run)
        else:
            return self._render_normal(decision)

    def _verdict(self, decision: PipelineDecision) -> str:
        if decision.is_default:
            return "! run (default decision)"
        if decision.should_run:
            return "✓ run"
        return "- skip"

    def _render_quiet(self, decision: PipelineDecision) -> str:
        return f"{self._verdict(decision)}\n"

    def _render_normal(self, decision: PipelineDecision) -> str:
        lines = [f"{self._verdict(decision)}: {decision.reason}"]
        if decision.fallback_used:
            lines.append("  base revision unusable; inspected head commit alone")
        return "\n".join(lines) + "\n"

    def _render_verbose(self, decision: PipelineDecision, run: RunInfo | None) -> str:
        lines: list[str] = []

        if run is not None:
            if run.tool_version:
                lines.append(f"pipegate {run.tool_version}")
            lines.append(f"repo: {run.repo_root}")
            lines.append(f"head: {run.head}")
            lines.append(f"base: {run.base or '-'}")
            if run.strategy:
                lines.append(f"strategy: {run.strategy}")
            if run.changed_paths is not None:
                lines.append(f"changed paths: {run.changed_paths}")
            if run.policy_file:
                lines.append(f"policy: {run.policy_file}")
            if run.patterns:
                lines.append("patterns: " + ", ".join(run.patterns))
            lines.append("")

        lines.append(f"{self._verdict(decision)}: {decision.reason}")
        lines.append(f"  workflow: {decision.workflow.value}")
        lines.append(f"  fallback used: {'yes' if decision.fallback_used else 'no'}")

        if decision.failure is not None:
            lines.append(f"  failed stage: {decision.failure.stage}")
            lines.append(f"    {decision.failure.message}")

        if decision.matched_paths:
            lines.append("  matched:")
            for p in decision.matched_paths:
                lines.append(f"    {p}")

        return "\n".join(lines).rstrip() + "\n"
