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

from pipegate.core.driver import DriverResult

# CI-friendly semantics
EXIT_OK = 0  # decision emitted (run or skip)
EXIT_DEFAULT_DECISION = 1  # a stage failed, conservative default emitted
EXIT_NO_DECISION = 2  # nothing could be emitted, or startup/configuration error

EXIT_CONFIG_ERROR = EXIT_NO_DECISION


def exit_code_from_result(result: DriverResult) -> int:
    """
    Policy:
      - computed decision emitted => EXIT_OK (regardless of should_run)
      - default decision emitted => EXIT_DEFAULT_DECISION
      - else EXIT_NO_DECISION
    """
    if result.outcome == "decided":
        return EXIT_OK
    if result.outcome == "defaulted":
        return EXIT_DEFAULT_DECISION
    return EXIT_NO_DECISION
