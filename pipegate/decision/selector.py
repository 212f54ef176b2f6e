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

from collections.abc import Iterable

from pipegate.decision.types import PipelineDecision

REASON_MAX_PATHS = 5


def _describe_matches(matched: tuple[str, ...], limit: int) -> str:
    shown = ", ".join(matched[:limit])
    overflow = len(matched) - limit
    suffix = f" (+{overflow} more)" if overflow > 0 else ""
    noun = "path" if len(matched) == 1 else "paths"
    return f"{len(matched)} relevant {noun} changed: {shown}{suffix}"


class DefaultPipelineSelector:
    """
    Maps the relevance verdict to a PipelineDecision.

    Deterministic: matched paths are sorted and the reason is derived only
    from its inputs.
    """

    def __init__(self, reason_max_paths: int = REASON_MAX_PATHS) -> None:
        self.reason_max_paths = reason_max_paths

    def select(self, matched: Iterable[str], fallback_used: bool) -> PipelineDecision:
        ordered = tuple(sorted(set(matched)))

        if ordered:
            return PipelineDecision(
                should_run=True,
                matched_paths=ordered,
                reason=_describe_matches(ordered, self.reason_max_paths),
                fallback_used=fallback_used,
            )

        return PipelineDecision(
            should_run=False,
            matched_paths=(),
            reason="no relevant paths changed",
            fallback_used=fallback_used,
        )
