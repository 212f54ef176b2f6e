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

import json
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from pipegate.core.errors import PolicyError
from pipegate.policy.types import (
    SYNTAX_PREFIXES,
    PathPattern,
    PatternSyntax,
    RelevancePolicy,
    WorkflowTargets,
)

DEFAULT_POLICY_FILES = (".pipegate.yml", ".pipegate.yaml", ".pipegate.json")


def default_policy_file(repo_root: str | Path) -> Path | None:
    root = Path(repo_root)
    for name in DEFAULT_POLICY_FILES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def compile_pattern(
    raw: Any,
    *,
    index: int,
    syntax: PatternSyntax = "regex",
    ignore_case: bool = False,
    file: str | None = None,
) -> PathPattern:
    if not isinstance(raw, str):
        raise PolicyError(
            f"pattern #{index} must be a string, got {type(raw).__name__}",
            code="invalid_pattern_type",
            file=file,
        )

    source = raw
    for prefix, prefixed_syntax in SYNTAX_PREFIXES.items():
        if raw.startswith(prefix):
            source = raw[len(prefix) :]
            syntax = prefixed_syntax
            break

    if not source.strip():
        raise PolicyError(f"pattern #{index} is empty", code="empty_pattern", file=file)

    try:
        return PathPattern(source=source, syntax=syntax, ignore_case=ignore_case)
    except re.error as e:
        raise PolicyError(
            f"pattern #{index} {raw!r} is not a valid {syntax}: {e}",
            code="invalid_pattern",
            file=file,
            details={"index": index, "pattern": raw},
        ) from e


def compile_patterns(
    raw: Sequence[Any],
    *,
    syntax: PatternSyntax = "regex",
    ignore_case: bool = False,
    file: str | None = None,
    start: int = 0,
) -> tuple[PathPattern, ...]:
    return tuple(
        compile_pattern(p, index=start + i, syntax=syntax, ignore_case=ignore_case, file=file)
        for i, p in enumerate(raw)
    )


class DefaultPolicyLoader:
    """
    Loads a RelevancePolicy from .pipegate.yml / .pipegate.yaml / .pipegate.json
    """

    def load(self, path: Path) -> RelevancePolicy:
        if not isinstance(path, Path):
            path = Path(path)

        file = str(path)
        if not path.exists():
            raise PolicyError(f"policy file does not exist: {path}", code="policy_not_found")

        data = self._read_policy_file(path)

        if not isinstance(data, dict):
            raise PolicyError("policy root must be a mapping/object.", code="invalid_policy", file=file)

        version = data.get("version", 1)
        if not isinstance(version, int) or isinstance(version, bool):
            raise PolicyError("'version' must be an integer.", code="invalid_version", file=file)

        syntax = data.get("syntax", "regex")
        if syntax not in ("regex", "glob"):
            raise PolicyError(
                f"'syntax' must be 'regex' or 'glob', got {syntax!r}.", code="invalid_syntax", file=file
            )

        ignore_case = data.get("ignore_case", False)
        if not isinstance(ignore_case, bool):
            raise PolicyError("'ignore_case' must be a boolean.", code="invalid_ignore_case", file=file)

        if "patterns" not in data:
            raise PolicyError("'patterns' is required (use [] for an empty policy).", code="missing_patterns", file=file)

        raw_patterns = data.get("patterns")
        if raw_patterns is None:
            raw_patterns = []
        if not isinstance(raw_patterns, list):
            raise PolicyError("'patterns' must be a list.", code="invalid_patterns", file=file)

        patterns = compile_patterns(raw_patterns, syntax=syntax, ignore_case=ignore_case, file=file)
        workflows = self._parse_workflows(data.get("workflows"), file=file)

        return RelevancePolicy(
            patterns=patterns,
            workflows=workflows,
            ignore_case=ignore_case,
            version=version,
            source=file,
        )

    def _read_policy_file(self, path: Path) -> Any:
        suffix = path.suffix.lower()
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PolicyError(f"cannot read policy file: {e}", code="policy_unreadable", file=str(path)) from e

        try:
            if suffix == ".json":
                return json.loads(raw)

            if suffix in (".yaml", ".yml"):
                return yaml.safe_load(raw)

            # Unknown extension: try JSON then YAML
            try:
                return json.loads(raw)
            except ValueError:
                return yaml.safe_load(raw)
        except (ValueError, yaml.YAMLError) as e:
            raise PolicyError(f"cannot parse policy file: {e}", code="policy_parse_error", file=str(path)) from e

    def _parse_workflows(self, raw: Any, *, file: str) -> WorkflowTargets:
        if raw is None:
            return WorkflowTargets()
        if not isinstance(raw, dict):
            raise PolicyError("'workflows' must be a mapping/object.", code="invalid_workflows", file=file)

        unknown = sorted(str(k) for k in raw if k not in ("full", "empty"))
        if unknown:
            raise PolicyError(
                f"unknown workflow variant(s): {', '.join(unknown)} (expected 'full' and/or 'empty').",
                code="unknown_workflow",
                file=file,
            )

        defaults = WorkflowTargets()
        values: dict[str, str] = {}
        for key in ("full", "empty"):
            value = raw.get(key, getattr(defaults, key))
            if not isinstance(value, str) or not value.strip():
                raise PolicyError(f"workflow '{key}' must be a non-empty string.", code="invalid_workflow", file=file)
            values[key] = value.strip()

        return WorkflowTargets(**values)


def build_policy(
    *,
    policy_file: Path | None,
    cli_patterns: Sequence[str] = (),
    cli_syntax: PatternSyntax = "regex",
    loader: DefaultPolicyLoader | None = None,
) -> RelevancePolicy:
    """
    Assemble the run's policy: file patterns first, then ``--pattern`` flags.

    A run with neither is a configuration error; an unconfigured gate must
    not decide that nothing is relevant.
    """
    if policy_file is None and not cli_patterns:
        raise PolicyError(
            "no relevance policy: pass --policy, --pattern, or add .pipegate.yml to the repository",
            code="policy_missing",
        )

    base = (loader or DefaultPolicyLoader()).load(policy_file) if policy_file is not None else RelevancePolicy()
    if not cli_patterns:
        return base

    extra = compile_patterns(
        list(cli_patterns),
        syntax=cli_syntax,
        ignore_case=base.ignore_case,
        start=len(base.patterns),
    )
    return base.with_patterns(extra)
