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

import fnmatch
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

PatternSyntax = Literal["regex", "glob"]

SYNTAX_PREFIXES: Mapping[str, PatternSyntax] = {"re:": "regex", "glob:": "glob"}

DEFAULT_FULL_WORKFLOW = ".gitlab/child-pipeline/ci-full.yml"
DEFAULT_EMPTY_WORKFLOW = ".gitlab/child-pipeline/ci-empty.yml"


@dataclass(frozen=True, slots=True)
class PathPattern:
    """
    One compiled relevance pattern.

    - regex: ``re.search`` against the repository-relative path (unanchored)
    - glob:  ``fnmatch.fnmatchcase`` against the full path; ``*`` crosses ``/``
    """

    source: str
    syntax: PatternSyntax
    ignore_case: bool = False
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        body = self.source
        if self.syntax == "glob":
            body = fnmatch.translate(self.source)
        flags = re.IGNORECASE if self.ignore_case else 0
        # re.error propagates to the loader, which reports the pattern index
        object.__setattr__(self, "_regex", re.compile(body, flags))

    def matches(self, path: str) -> bool:
        if self.syntax == "glob":
            return self._regex.match(path) is not None
        return self._regex.search(path) is not None

    def to_dict(self) -> dict[str, Any]:
        return {"pattern": self.source, "syntax": self.syntax, "ignore_case": self.ignore_case}


@dataclass(frozen=True, slots=True)
class WorkflowTargets:
    """Child pipeline files included for each workflow variant."""

    full: str = DEFAULT_FULL_WORKFLOW
    empty: str = DEFAULT_EMPTY_WORKFLOW


@dataclass(frozen=True, slots=True)
class RelevancePolicy:
    """
    Ordered set of patterns defining which changed paths matter for CI.

    Loaded once per run and never mutated.
    """

    patterns: tuple[PathPattern, ...] = ()
    workflows: WorkflowTargets = field(default_factory=WorkflowTargets)
    ignore_case: bool = False
    version: int = 1
    source: str | None = None  # policy file path, None when built from flags only

    def is_empty(self) -> bool:
        return not self.patterns

    def with_patterns(self, extra: tuple[PathPattern, ...]) -> "RelevancePolicy":
        return RelevancePolicy(
            patterns=self.patterns + extra,
            workflows=self.workflows,
            ignore_case=self.ignore_case,
            version=self.version,
            source=self.source,
        )
