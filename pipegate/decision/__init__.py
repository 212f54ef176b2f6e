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

from pipegate.decision.child_pipeline import ChildPipelineGenerator, workflow_file
from pipegate.decision.emitter import (
    FORMATS,
    DecisionEmitter,
    DecisionFormat,
    decision_document,
    parse_decision,
    parse_document,
    render_decision,
    write_text_atomic,
)
from pipegate.decision.selector import DefaultPipelineSelector
from pipegate.decision.types import (
    DEFAULT_DECISION_REASON,
    DecisionFailure,
    PipelineDecision,
    RunInfo,
    WorkflowVariant,
    default_decision,
)

__all__ = [
    "PipelineDecision",
    "DecisionFailure",
    "RunInfo",
    "WorkflowVariant",
    "DEFAULT_DECISION_REASON",
    "default_decision",
    "DefaultPipelineSelector",
    "DecisionEmitter",
    "DecisionFormat",
    "FORMATS",
    "decision_document",
    "render_decision",
    "parse_decision",
    "parse_document",
    "write_text_atomic",
    "ChildPipelineGenerator",
    "workflow_file",
]
