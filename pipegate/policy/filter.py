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

from collections.abc import Iterable, Sequence

from pipegate.policy.types import PathPattern, RelevancePolicy
from pipegate.vcs.types import ChangeSet


def match_any(path: str, patterns: Sequence[PathPattern]) -> bool:
    """
    OR over patterns; stops at the first hit.
    Pattern order affects only how soon a hit is found, never the outcome.
    """
    return any(p.matches(path) for p in patterns)


def select_paths(paths: Iterable[str], patterns: Sequence[PathPattern]) -> frozenset[str]:
    return frozenset(path for path in paths if match_any(path, patterns))


class DefaultRelevanceFilter:
    """
    Pure function of (change set, policy): the changed paths that matter.
    """

    def filter(self, change_set: ChangeSet, policy: RelevancePolicy) -> frozenset[str]:
        if not change_set.paths or policy.is_empty():
            return frozenset()
        return select_paths(change_set.paths, policy.patterns)
