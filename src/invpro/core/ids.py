# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import threading


class IdSequence:
    """Thread-safe monotonically increasing integer ids (1, 2, 3, ...).

    Ids are never handed out twice, even after the record using them is deleted.
    """

    def __init__(self, start: int = 1):
        self._lock = threading.Lock()
        self._next = int(start)

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value
