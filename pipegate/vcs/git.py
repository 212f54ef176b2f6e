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
import subprocess
from dataclasses import dataclass
from pathlib import Path

from pipegate.core.errors import DecisionTimeoutError, HistoryAccessError
from pipegate.vcs.types import RevisionId

logger = logging.getLogger(__name__)


def _split_nul(output: str) -> tuple[str, ...]:
    return tuple(p for p in output.split("\0") if p)


def _check_rev(rev: RevisionId) -> None:
    # a leading dash would be parsed by git as an option
    if not rev or rev.startswith("-"):
        raise HistoryAccessError(
            f"invalid revision identifier: {rev!r}",
            code="invalid_revision",
            details={"revision": rev},
        )


@dataclass(frozen=True, slots=True)
class GitVCSProvider:
    """
    Git-based history provider.

    Provides:
      - commit existence checks (shallow clone detection)
      - range diffs between two commits
      - the change list of a single commit

    All operations are read-only and safe to run in any Git repository.
    Paths are requested NUL-separated (``-z``) so that names with spaces,
    quotes or non-ASCII characters come back verbatim.
    """

    git_executable: str = "git"

    def _run(self, repo_root: str | Path, args: list[str], timeout: float) -> subprocess.CompletedProcess[str]:
        cmd = [self.git_executable, *args]
        logger.debug("running %s (timeout %.2fs)", " ".join(cmd), timeout)
        try:
            return subprocess.run(
                cmd,
                cwd=str(repo_root),
                capture_output=True,
                encoding="utf-8",
                errors="surrogateescape",
                check=False,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise DecisionTimeoutError(
                f"git {args[0]} timed out after {timeout:.2f}s",
                code="git_timeout",
                details={"command": cmd},
            ) from e
        except FileNotFoundError as e:
            raise HistoryAccessError(
                f"cannot run git in {repo_root}: {e.strerror or e}",
                code="git_unavailable",
                details={"command": cmd},
            ) from e
        except OSError as e:
            raise HistoryAccessError(
                f"cannot run git in {repo_root}: {e}",
                code="git_os_error",
                details={"command": cmd},
            ) from e

    def _names(self, repo_root: str | Path, args: list[str], timeout: float) -> tuple[str, ...]:
        result = self._run(repo_root, args, timeout)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            first_line = stderr.splitlines()[0] if stderr else f"exit status {result.returncode}"
            raise HistoryAccessError(
                f"git {args[0]} failed: {first_line}",
                code="git_failed",
                details={"returncode": result.returncode, "stderr": stderr, "args": args},
            )
        return _split_nul(result.stdout)

    def object_exists(self, repo_root: str | Path, rev: RevisionId, *, timeout: float) -> bool:
        """
        Check whether ``rev`` resolves to a commit in the local object store.

        Returns:
            True if present, False if missing (e.g. outside a shallow clone)
        """
        if not rev or rev.startswith("-"):
            return False
        result = self._run(repo_root, ["cat-file", "-e", f"{rev}^{{commit}}"], timeout)
        return result.returncode == 0

    def diff_names(
        self, repo_root: str | Path, base: RevisionId, head: RevisionId, *, timeout: float
    ) -> tuple[str, ...]:
        _check_rev(base)
        _check_rev(head)
        return self._names(
            repo_root,
            ["diff", "--name-only", "--no-renames", "-z", base, head, "--"],
            timeout,
        )

    def commit_names(self, repo_root: str | Path, rev: RevisionId, *, timeout: float) -> tuple[str, ...]:
        _check_rev(rev)
        # --root lists every file of an initial commit, -m lists merge changes against each parent
        return self._names(
            repo_root,
            ["diff-tree", "-r", "--root", "-m", "--no-commit-id", "--name-only", "--no-renames", "-z", rev],
            timeout,
        )
