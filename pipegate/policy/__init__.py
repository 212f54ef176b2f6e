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

from pipegate.policy.filter import DefaultRelevanceFilter, match_any, select_paths
from pipegate.policy.loader import (
    DEFAULT_POLICY_FILES,
    DefaultPolicyLoader,
    build_policy,
    compile_pattern,
    compile_patterns,
    default_policy_file,
)
from pipegate.policy.types import PathPattern, PatternSyntax, RelevancePolicy, WorkflowTargets

__all__ = [
    "PathPattern",
    "PatternSyntax",
    "RelevancePolicy",
    "WorkflowTargets",
    "DefaultPolicyLoader",
    "DefaultRelevanceFilter",
    "DEFAULT_POLICY_FILES",
    "build_policy",
    "compile_pattern",
    "compile_patterns",
    "default_policy_file",
    "match_any",
    "select_paths",
]
