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

from dataclasses import dataclass
from enum import Enum

RevisionId = str
"""
A revision identifier understood by git.

Examples:
- "3f2a9c1e..." (full or abbreviated commit SHA)
- "HEAD"
- "origin/main"
"""

# Revision inputs


@dataclass(frozen=True, slots=True)
class RevisionPair:
    """
    The two points being compared.

    ``head`` is always present. ``base`` may be None, empty, the all-zero
    sentinel CI vendors send for new branches and API-triggered pipelines,
    or a commit that is missing from a shallow clone.
    """

    head: RevisionId
    base: RevisionId | None = None


class ComparisonStrategy(str, Enum):
    RANGE = "range"
    SINGLE = "single"


@dataclass(frozen=True, slots=True)
class ResolvedComparison:
    """
    Outcome of revision resolution.

    RANGE:  compare ``base`` against ``head``
    SINGLE: inspect the change list of ``head`` alone
    """

    strategy: ComparisonStrategy
    head: RevisionId
    base: RevisionId | None = None

    @staticmethod
    def range(base: RevisionId, head: RevisionId) -> "ResolvedComparison":
        return ResolvedComparison(strategy=ComparisonStrategy.RANGE, head=head, base=base)

    @staticmethod
    def single(head: RevisionId) -> "ResolvedComparison":
        return ResolvedComparison(strategy=ComparisonStrategy.SINGLE, head=head)

    @property
    def degraded(self) -> bool:
        return self.strategy == ComparisonStrategy.SINGLE


# Change sets


class ChangeMode(str, Enum):
    DIFF = "diff"
    SINGLE_COMMIT_FALLBACK = "single_commit_fallback"


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """
    Files touched by a comparison.

    ``paths`` is empty only when nothing changed; failing to read history is
    an error, never an empty change set.
    """

    paths: frozenset[str]
    mode: ChangeMode

    def __len__(self) -> int:
        return len(self.paths)

    def sorted_paths(self) -> tuple[str, ...]:
        return tuple(sorted(self.paths))
