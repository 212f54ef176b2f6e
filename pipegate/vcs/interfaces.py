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
from typing import Protocol

from pipegate.vcs.types import RevisionId


class HistoryProvider(Protocol):
    """
    Read-only access to version-control history.

    Implementations must never modify the repository. ``timeout`` is the
    number of seconds the single query may take.
    """

    def object_exists(self, repo_root: Path, rev: RevisionId, *, timeout: float) -> bool:
        """
        True if ``rev`` names a commit present in the local object store.
        Missing objects (shallow clones, force-pushed history) return False.
        """
        raise NotImplementedError()

    def diff_names(self, repo_root: Path, base: RevisionId, head: RevisionId, *, timeout: float) -> tuple[str, ...]:
        """
        Paths differing between ``base`` and ``head``.

        Raises:
            HistoryAccessError: if history cannot be read
        """
        raise NotImplementedError()

    def commit_names(self, repo_root: Path, rev: RevisionId, *, timeout: float) -> tuple[str, ...]:
        """
        Paths touched by the single commit ``rev`` (its own change list).

        Raises:
            HistoryAccessError: if history cannot be read
        """
        raise NotImplementedError()
