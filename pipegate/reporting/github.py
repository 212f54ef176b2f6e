# SPDX-License-Identifier: AGPL-3.0-only
#
# Copyright (c) 2026 Pipegate Contributors
#
# This file is part of Pipegate.
#
# Pipegate is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 only.
#
# Pipegate is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.
# See the GNU Affero General Public License for more details.

from pipegate.decision.types import PipelineDecision, RunInfo


class GitHubSummaryRenderer:
    """
    Markdown summary for $GITHUB_STEP_SUMMARY (also readable in GitLab MR notes).
    """

    def __init__(self, max_items: int = 20) -> None:
        self._max_items = max_items

    def render(self, decision: PipelineDecision, run: RunInfo | None = None) -> str:
        lines: list[str] = []

        lines.append(self._render_header(decision, run))
        lines.append(self._render_verdict(decision))
        lines.append(self._render_matched(decision))
        lines.append(self._render_failure(decision))

        # Filter empty sections and join
        return "\n".join(s for s in lines if s) + "\n"

    def _render_header(self, decision: PipelineDecision, run: RunInfo | None) -> str:
        lines: list[str] = []

        lines.append("## Pipeline Decision")

        parts: list[str] = []
        if run is not None:
            parts.append(f"**Head:** `{run.head[:12]}`")
            if run.base:
                parts.append(f"**Base:** `{run.base[:12]}`")
            if run.strategy:
                parts.append(f"**Strategy:** `{run.strategy}`")

        if parts:
            lines.append(" | ".join(parts))
        lines.append("")

        return "\n".join(lines)

    def _render_verdict(self, decision: PipelineDecision) -> str:
        rows = [
            ["Run workflow", "yes" if decision.should_run else "no"],
            ["Workflow", f"`{decision.workflow.value}`"],
            ["Fallback used", "yes" if decision.fallback_used else "no"],
            ["Reason", decision.reason.replace("|", "\\|")],
        ]
        return _aligned_table(headers=["", "Value"], rows=rows) + "\n"

    def _render_matched(self, decision: PipelineDecision) -> str:
        if not decision.matched_paths:
            return ""

        lines: list[str] = []
        lines.append(f"### Relevant Changes ({len(decision.matched_paths)})")
        lines.append("")

        items = decision.matched_paths[: self._max_items]
        for p in items:
            lines.append(f"- `{p}`")
        overflow = len(decision.matched_paths) - self._max_items
        if overflow > 0:
            lines.append(f"- ... (+{overflow} more)")

        lines.append("")
        return "\n".join(lines)

    def _render_failure(self, decision: PipelineDecision) -> str:
        if decision.failure is None:
            return ""

        lines: list[str] = []
        lines.append("### Decision Engine Failure")
        lines.append("")
        lines.append(f"Stage `{decision.failure.stage}` failed: {decision.failure.message}")
        lines.append("")
        lines.append("> The full workflow runs because the change detector could not decide.")
        lines.append("")
        return "\n".join(lines)


def _aligned_table(headers: list[str], rows: list[list[str]]) -> str:
    """Render a Markdown table with columns padded to equal width."""
    col_count = len(headers)
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            if i < col_count:
                widths[i] = max(widths[i], len(cell))

    def _fmt_row(cells: list[str]) -> str:
        parts = []
        for i, cell in enumerate(cells):
            parts.append(f" {cell:<{widths[i]}} ")
        return "|" + "|".join(parts) + "|"

    lines = [
        _fmt_row(headers),
        "|" + "|".join("-" * (w + 2) for w in widths) + "|",
    ]
    for row in rows:
        lines.append(_fmt_row(row))

    return "\n".join(lines)
