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

import time

from pipegate.core.errors import DecisionTimeoutError


class Deadline:
    """
    Run-wide time budget.

    Every history query asks for the remaining budget and passes it on as its
    own timeout, so the whole run is bounded by one number.
    """

    def __init__(self, seconds: float, *, clock=time.monotonic) -> None:
        self._clock = clock
        self._seconds = seconds
        self._expires_at = clock() + seconds

    @property
    def seconds(self) -> float:
        return self._seconds

    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def remaining(self) -> float:
        """
        Seconds left in the budget.

        Raises:
            DecisionTimeoutError: if the budget is exhausted
        """
        left = self._expires_at - self._clock()
        if left <= 0:
            raise DecisionTimeoutError(
                f"time budget of {self._seconds:g}s exhausted",
                code="timeout",
                details={"timeout_seconds": self._seconds},
            )
        return left
