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

from collections.abc import Mapping
from typing import Any


class PipegateError(Exception):
    """
    Base class for all pipegate errors.

    Every error carries a stable machine-readable ``code`` and the stage of
    the decision run it belongs to, so the driver can print a single-line
    diagnostic without inspecting the concrete type.
    """

    stage: str = "engine"

    def __init__(
        self,
        message: str,
        code: str = "pipegate_error",
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return self.message


class HistoryAccessError(PipegateError):
    """Raised when repository history cannot be read (fatal, never "no changes")."""

    stage = "extract"


class DecisionTimeoutError(HistoryAccessError):
    """Raised when the run-wide time budget is exhausted."""

    stage = "timeout"


class PolicyError(PipegateError):
    """
    Raised when the relevance policy is missing or malformed.

    Policy errors happen at startup, before any revision work begins.
    """

    stage = "policy"

    def __init__(
        self,
        message: str,
        code: str = "policy_error",
        file: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.file = file

    def __str__(self) -> str:
        if self.file:
            return f"{self.file}: {self.message}"
        return self.message


class EmitError(PipegateError):
    """Raised when a decision artifact cannot be rendered, validated or written."""

    stage = "emit"
