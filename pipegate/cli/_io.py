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

from pipegate.policy.loader import default_policy_file


def repo_root_path(path: str) -> Path:
    # not required to exist: a missing repository is a history error, handled by the driver
    return Path(path).resolve()


def policy_file_for(repo_root: Path, policy: str | None) -> Path | None:
    if policy is not None:
        return Path(policy)
    return default_policy_file(repo_root)


def optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None
