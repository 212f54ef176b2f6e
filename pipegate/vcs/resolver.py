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
from pipegate.vcs.git import GitVCSProvider
from pipegate.vcs.interfaces import HistoryProvider
from pipegate.vcs.types import ResolvedComparison, RevisionId, RevisionPair

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT = 30.0


def is_null_revision(rev: RevisionId | None) -> bool:
    """
    True for revisions that cannot serve as a comparison base:
    None, empty/blank strings and the all-zero sentinel (any length).
    """
    if rev is None:
        return True
    rev = rev.strip()
    return not rev or set(rev) == {"0"}


class DefaultRevisionResolver:
    """
    Picks the comparison strategy for a revision pair.

    Resolution never fails: whatever makes the base unusable (sentinel,
    missing object, git unavailable, exhausted time budget) degrades to
    inspecting the head commit alone. Real history failures surface later,
    in extraction, where they are fatal.
    """

    def __init__(self, provider: HistoryProvider | None = None) -> None:
        self.provider = provider if provider is not None else GitVCSProvider()

    def resolve(
        self,
        pair: RevisionPair,
        *,
        repo_root: Path,
        deadline: Deadline | None = None,
    ) -> ResolvedComparison:
        head = pair.head.strip()

        if is_null_revision(pair.base):
            logger.info("base revision %r is null; inspecting %s alone", pair.base, head)
            return ResolvedComparison.single(head)

        base = pair.base.strip()  # type: ignore[union-attr]
        try:
            timeout = deadline.remaining() if deadline is not None else DEFAULT_QUERY_TIMEOUT
            present = self.provider.object_exists(repo_root, base, timeout=timeout)
        except Exception as e:
            logger.warning("cannot confirm base revision %s (%s); inspecting %s alone", base, e, head)
            return ResolvedComparison.single(head)

        if not present:
            logger.info("base revision %s not found in local history; inspecting %s alone", base, head)
            return ResolvedComparison.single(head)

        return ResolvedComparison.range(base, head)
