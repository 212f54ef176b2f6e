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

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

DEFAULT_DECISION_REASON = "decision engine failure; defaulting to full run"


class WorkflowVariant(str, Enum):
    FULL = "full"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class DecisionFailure:
    """
    Which stage failed when the decision is the conservative default.
    """

    stage: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"stage": self.stage, "message": self.message}

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "DecisionFailure":
        return DecisionFailure(stage=str(data["stage"]), message=str(data["message"]))


@dataclass(frozen=True, slots=True)
class PipelineDecision:
    """
    The output contract of a decision run.

    Created once per run, emitted, then discarded.
    ``matched_paths`` is sorted and is empty whenever ``should_run`` is False.
    """

    should_run: bool
    matched_paths: tuple[str, ...]
    reason: str
    fallback_used: bool
    failure: DecisionFailure | None = None

    @property
    def workflow(self) -> WorkflowVariant:
        return WorkflowVariant.FULL if self.should_run else WorkflowVariant.EMPTY

    @property
    def is_default(self) -> bool:
        return self.failure is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "shouldRun": self.should_run,
            "workflow": self.workflow.value,
            "reason": self.reason,
            "matchedPaths": list(self.matched_paths),
            "fallbackUsed": self.fallback_used,
            "failure": self.failure.to_dict() if self.failure is not None else None,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "PipelineDecision":
        failure = data.get("failure")
        return PipelineDecision(
            should_run=data["shouldRun"],
            matched_paths=tuple(data.get("matchedPaths") or ()),
            reason=data["reason"],
            fallback_used=data["fallbackUsed"],
            failure=DecisionFailure.from_dict(failure) if failure else None,
        )


def default_decision(*, stage: str, message: str, fallback_used: bool = False) -> PipelineDecision:
    """
    The conservative decision used whenever the run cannot finish normally.
    """
    return PipelineDecision(
        should_run=True,
        matched_paths=(),
        reason=DEFAULT_DECISION_REASON,
        fallback_used=fallback_used,
        failure=DecisionFailure(stage=stage, message=message),
    )


@dataclass(frozen=True, slots=True)
class RunInfo:
    """
    Provenance for one decision run, emitted next to the decision for audit.
    """

    repo_root: str
    head: str
    base: str | None = None
    strategy: str | None = None  # "range" / "single"; None if resolution never ran
    changed_paths: int | None = None
    policy_file: str | None = None
    patterns: tuple[str, ...] = ()
    tool_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "repoRoot": self.repo_root,
            "head": self.head,
            "base": self.base,
            "strategy": self.strategy,
            "changedPaths": self.changed_paths,
            "policyFile": self.policy_file,
            "patterns": list(self.patterns),
            "toolVersion": self.tool_version,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "RunInfo":
        return RunInfo(
            repo_root=data["repoRoot"],
            head=data["head"],
            base=data.get("base"),
            strategy=data.get("strategy"),
            changed_paths=data.get("changedPaths"),
            policy_file=data.get("policyFile"),
            patterns=tuple(data.get("patterns") or ()),
            tool_version=data.get("toolVersion"),
        )
