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

from pipegate.vcs.extractor import DefaultChangeSetExtractor
from pipegate.vcs.git import GitVCSProvider
from pipegate.vcs.interfaces import HistoryProvider
from pipegate.vcs.resolver import DefaultRevisionResolver, is_null_revision
from pipegate.vcs.types import (
    ChangeMode,
    ChangeSet,
    ComparisonStrategy,
    ResolvedComparison,
    RevisionId,
    RevisionPair,
)

__all__ = [
    "RevisionId",
    "RevisionPair",
    "ComparisonStrategy",
    "ResolvedComparison",
    "ChangeMode",
    "ChangeSet",
    "HistoryProvider",
    "GitVCSProvider",
    "DefaultRevisionResolver",
    "DefaultChangeSetExtractor",
    "is_null_revision",
]
