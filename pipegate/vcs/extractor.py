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
from pathlib import Path

from pipegate.core.deadline import Deadline
from pipegate.core.errors import HistoryAccessError
from pipegate.vcs.git import GitVCSProvider
from pipegate.vcs.interfaces import HistoryProvider
from pipegate.vcs.resolver import DEFAULT_QUERY_TIMEOUT
from pipegate.vcs.types import ChangeMode, ChangeSet, ComparisonStrategy, ResolvedComparison

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    normalized = path.replace("\\", "/").strip()
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


class DefaultChangeSetExtractor:
    """
    Lists the files touched by a resolved comparison.

    Errors from the history provider (HistoryAccessError and its timeout
    subclass) propagate unchanged: an unreadable history is never reported
    as an empty change set.
    """

    def __init__(self, provider: HistoryProvider | None = None) -> None:
        self.provider = provider if provider is not None else GitVCSProvider()

    def extract(
        self,
        comparison: ResolvedComparison,
        *,
        repo_root: Path,
        deadline: Deadline | None = None,
    ) -> ChangeSet:
        timeout = deadline.remaining() if deadline is not None else DEFAULT_QUERY_TIMEOUT

        if comparison.strategy == ComparisonStrategy.RANGE:
            if comparison.base is None:
                raise HistoryAccessError("range comparison without a base revision", code="invalid_comparison")
            raw = self.provider.diff_names(repo_root, comparison.base, comparison.head, timeout=timeout)
            mode = ChangeMode.DIFF
        else:
            raw = self.provider.commit_names(repo_root, comparison.head, timeout=timeout)
            mode = ChangeMode.SINGLE_COMMIT_FALLBACK

        paths = frozenset(p for p in (normalize_path(r) for r in raw) if p)
        logger.debug("%s produced %d changed path(s)", mode.value, len(paths))
        return ChangeSet(paths=paths, mode=mode)
