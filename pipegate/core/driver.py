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

import logging
import sys
import time
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Literal, TextIO

from pipegate.core.config import DriverConfig
from pipegate.core.deadline import Deadline
from pipegate.core.errors import EmitError, PipegateError
from pipegate.decision.child_pipeline import ChildPipelineGenerator
from pipegate.decision.emitter import DecisionEmitter, write_text_atomic
from pipegate.decision.selector import DefaultPipelineSelector
from pipegate.decision.types import PipelineDecision, RunInfo, default_decision
from pipegate.policy.filter import DefaultRelevanceFilter
from pipegate.reporting.github import GitHubSummaryRenderer
from pipegate.vcs.extractor import DefaultChangeSetExtractor
from pipegate.vcs.git import GitVCSProvider
from pipegate.vcs.interfaces import HistoryProvider
from pipegate.vcs.resolver import DefaultRevisionResolver
from pipegate.vcs.types import ResolvedComparison, RevisionPair

logger = logging.getLogger(__name__)


class DriverState(str, Enum):
    START = "start"
    RESOLVING = "resolving"
    EXTRACTING = "extracting"
    FILTERING = "filtering"
    SELECTING = "selecting"
    EMITTING = "emitting"
    DONE = "done"
    ERROR = "error"


# Stage labels used in diagnostics and DecisionFailure.stage
_STAGE_NAMES = {
    DriverState.RESOLVING: "resolve",
    DriverState.EXTRACTING: "extract",
    DriverState.FILTERING: "filter",
    DriverState.SELECTING: "select",
    DriverState.EMITTING: "emit",
}

Outcome = Literal["decided", "defaulted", "failed"]


@dataclass(frozen=True)
class DriverResult:
    """
    outcome:
      - decided:   the computed decision was emitted
      - defaulted: a stage failed, the conservative default was emitted
      - failed:    a stage failed and not even the default could be emitted
    """

    outcome: Outcome
    decision: PipelineDecision
    run: RunInfo
    states: tuple[DriverState, ...]


class DecisionDriver:
    """
    The orchestrator. Sequences resolve -> extract -> filter -> select -> emit.

    START -> RESOLVING -> EXTRACTING -> FILTERING -> SELECTING -> EMITTING -> DONE
    Any failure moves to ERROR, where the default decision (run everything)
    is emitted instead. Only one run per instance at a time.
    """

    def __init__(
        self,
        *,
        provider: HistoryProvider | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        clock=time.monotonic,
    ) -> None:
        provider = provider if provider is not None else GitVCSProvider()
        self.resolver = DefaultRevisionResolver(provider)
        self.extractor = DefaultChangeSetExtractor(provider)
        self.relevance_filter = DefaultRelevanceFilter()
        self.selector = DefaultPipelineSelector()
        self.summary_renderer = GitHubSummaryRenderer()
        self._stdout = stdout
        self._stderr = stderr
        self._clock = clock
        self._states: list[DriverState] = []

    # streams are looked up at call time so that redirected sys.stdout/sys.stderr are honored
    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr if self._stderr is not None else sys.stderr

    @property
    def state(self) -> DriverState:
        return self._states[-1]

    def _enter(self, state: DriverState) -> None:
        logger.debug("state %s -> %s", self._states[-1].value if self._states else "-", state.value)
        self._states.append(state)

    def _diagnose(self, stage: str, message: str) -> None:
        print(f"pipegate: error: {stage}: {message}", file=self.stderr)

    def run(self, cfg: DriverConfig) -> DriverResult:
        self._states = []
        self._enter(DriverState.START)

        deadline = Deadline(cfg.timeout, clock=self._clock)
        run_info = RunInfo(
            repo_root=str(cfg.repo_root),
            head=cfg.head,
            base=cfg.base,
            policy_file=cfg.policy.source,
            patterns=tuple(p.source for p in cfg.policy.patterns),
            tool_version=cfg.tool_version,
        )
        comparison: ResolvedComparison | None = None

        try:
            self._enter(DriverState.RESOLVING)
            comparison = self.resolver.resolve(
                RevisionPair(head=cfg.head, base=cfg.base),
                repo_root=cfg.repo_root,
                deadline=deadline,
            )
            run_info = replace(run_info, strategy=comparison.strategy.value)

            self._enter(DriverState.EXTRACTING)
            change_set = self.extractor.extract(comparison, repo_root=cfg.repo_root, deadline=deadline)
            run_info = replace(run_info, changed_paths=len(change_set))

            self._enter(DriverState.FILTERING)
            matched = self.relevance_filter.filter(change_set, cfg.policy)

            self._enter(DriverState.SELECTING)
            decision = self.selector.select(matched, comparison.degraded)

            self._enter(DriverState.EMITTING)
            # the decision document is written last: nothing may follow it on its sink
            if cfg.pipeline_out is not None:
                ChildPipelineGenerator(cfg.policy.workflows).write(decision, cfg.pipeline_out)
            self._emit_decision(cfg, decision, run_info)
        except Exception as e:
            return self._fail(cfg, e, run_info, comparison)

        if cfg.summary_out is not None:
            self._write_summary(cfg.summary_out, decision, run_info)
        self._enter(DriverState.DONE)
        return DriverResult(outcome="decided", decision=decision, run=run_info, states=tuple(self._states))

    def _fail(
        self,
        cfg: DriverConfig,
        error: Exception,
        run_info: RunInfo,
        comparison: ResolvedComparison | None,
    ) -> DriverResult:
        failed_state = self.state
        stage = _STAGE_NAMES.get(failed_state, failed_state.value)
        if isinstance(error, PipegateError) and error.stage == "timeout":
            stage = "timeout"
        message = str(error) if isinstance(error, PipegateError) else f"{type(error).__name__}: {error}"

        self._enter(DriverState.ERROR)
        logger.debug("stage %s failed", stage, exc_info=error)
        self._diagnose(stage, message)

        decision = default_decision(
            stage=stage,
            message=message,
            fallback_used=comparison.degraded if comparison is not None else False,
        )
        emitted = self._emit_default(cfg, decision, run_info)
        return DriverResult(
            outcome="defaulted" if emitted else "failed",
            decision=decision,
            run=run_info,
            states=tuple(self._states),
        )

    # emission

    def _emit_decision(self, cfg: DriverConfig, decision: PipelineDecision, run_info: RunInfo) -> None:
        emitter = DecisionEmitter(cfg.output_format, tool_version=cfg.tool_version)
        if cfg.out is None:
            emitter.emit(decision, self.stdout, run_info)
        else:
            emitter.emit_to_path(decision, cfg.out, run_info, append=cfg.append)

    def _write_summary(self, path: Path, decision: PipelineDecision, run_info: RunInfo) -> None:
        # the summary is informational; a failure never changes the decision
        try:
            write_text_atomic(path, self.summary_renderer.render(decision, run_info), append=True)
        except EmitError as e:
            self._diagnose("emit", str(e))

    def _emit_default(self, cfg: DriverConfig, decision: PipelineDecision, run_info: RunInfo) -> bool:
        """
        Emit the default decision, retrying once on stdout if the primary sink fails.

        Returns:
            True if the decision document and the child pipeline config (when
            requested) were written
        """
        try:
            self._emit_decision(cfg, decision, run_info)
        except EmitError as e:
            self._diagnose("emit", str(e))
            if cfg.out is None:
                return False
            try:
                DecisionEmitter(cfg.output_format, tool_version=cfg.tool_version).emit(decision, self.stdout, run_info)
            except EmitError as retry_error:
                self._diagnose("emit", f"stdout fallback failed: {retry_error}")
                return False

        if cfg.pipeline_out is not None:
            try:
                ChildPipelineGenerator(cfg.policy.workflows).write(decision, cfg.pipeline_out)
            except EmitError as e:
                self._diagnose("emit", str(e))
                return False

        if cfg.summary_out is not None:
            self._write_summary(cfg.summary_out, decision, run_info)

        return True
