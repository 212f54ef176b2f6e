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

from pathlib import Path
from typing import Any

import yaml

from pipegate.core.errors import EmitError
from pipegate.decision.emitter import write_text_atomic
from pipegate.decision.types import PipelineDecision, WorkflowVariant
from pipegate.policy.types import WorkflowTargets


def workflow_file(variant: WorkflowVariant, targets: WorkflowTargets) -> str:
    return targets.full if variant == WorkflowVariant.FULL else targets.empty


class ChildPipelineGenerator:
    """
    Generates the dynamic child pipeline configuration for a decision.

    The generated file only includes the workflow file of the selected
    variant, e.g.::

        include:
          - local: .gitlab/child-pipeline/ci-full.yml
    """

    def __init__(self, targets: WorkflowTargets | None = None) -> None:
        self.targets = targets if targets is not None else WorkflowTargets()

    def config(self, decision: PipelineDecision) -> dict[str, Any]:
        return {"include": [{"local": workflow_file(decision.workflow, self.targets)}]}

    def render(self, decision: PipelineDecision) -> str:
        config = self.config(decision)
        header = f"# Generated by pipegate: {decision.workflow.value} workflow\n"
        text = header + yaml.safe_dump(config, sort_keys=False, default_flow_style=False)

        try:
            reparsed = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise EmitError(f"child pipeline config does not parse: {e}", code="invalid_pipeline_config") from e
        if reparsed != config:
            raise EmitError("child pipeline config does not round-trip", code="invalid_pipeline_config")
        return text

    def write(self, decision: PipelineDecision, path: str | Path) -> None:
        write_text_atomic(path, self.render(decision))
