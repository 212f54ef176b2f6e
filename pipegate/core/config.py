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

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from pipegate.decision.emitter import DecisionFormat
from pipegate.policy.types import RelevancePolicy

DEFAULT_TIMEOUT_SECONDS = 30.0

# Looked up in order; the first non-empty value wins.
BASE_ENV_VARS: tuple[str, ...] = ("PIPEGATE_BASE", "CI_COMMIT_BEFORE_SHA")
HEAD_ENV_VARS: tuple[str, ...] = ("PIPEGATE_HEAD", "CI_COMMIT_SHA", "GITHUB_SHA", "CIRCLE_SHA1")
DEFAULT_HEAD = "HEAD"


def revision_from_env(names: Sequence[str], env: Mapping[str, str] | None = None) -> str | None:
    env = os.environ if env is None else env
    for name in names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return None


def resolve_revision_inputs(
    base: str | None,
    head: str | None,
    env: Mapping[str, str] | None = None,
) -> tuple[str | None, str]:
    """
    Fill missing --base/--head values from CI environment variables.

    Returns:
        (base, head); base may stay None, head falls back to HEAD
    """
    if base is None:
        base = revision_from_env(BASE_ENV_VARS, env)
    if head is None or not head.strip():
        head = revision_from_env(HEAD_ENV_VARS, env) or DEFAULT_HEAD
    return base, head


@dataclass(frozen=True)
class DriverConfig:
    repo_root: Path
    head: str
    policy: RelevancePolicy
    base: str | None = None

    out: Path | None = None  # None writes the decision to stdout
    output_format: DecisionFormat = "json"
    append: bool = False

    pipeline_out: Path | None = None  # child pipeline configuration
    summary_out: Path | None = None  # Markdown summary, appended

    timeout: float = DEFAULT_TIMEOUT_SECONDS
    tool_version: str | None = None
