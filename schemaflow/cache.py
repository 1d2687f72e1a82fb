# Copyright 2026 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Memoization table of validation results keyed by raw input."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Hashable, Optional, Tuple

from .utils import UNDEFINED, assert_that

_SUPPORTED = (type(None), bool, int, float, str)


class Cache:
    """Bounded LRU table shared by every validate call against one schema node.

    Only primitive inputs are stored. Keys carry the input type so that
    ``1``, ``1.0`` and ``True`` never share an entry. Access is guarded by a
    lock so a node may be validated from several threads.
    """

    def __init__(self, max_size: int = 1000):
        assert_that(isinstance(max_size, int) and max_size > 0, "Invalid cache max size:", max_size)
        self.max_size = max_size
        self._entries: "OrderedDict[Tuple[type, Hashable], Any]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def _key(value: Any) -> Optional[Tuple[type, Hashable]]:
        if value is UNDEFINED or type(value) in _SUPPORTED:
            return (type(value), value)
        return None

    def get(self, value: Any) -> Any:
        key = self._key(value)
        if key is None:
            return None

        with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self._entries.move_to_end(key)
            return result

    def set(self, value: Any, result: Any) -> None:
        key = self._key(value)
        if key is None:
            return

        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def spawn(self) -> "Cache":
        """Return an empty cache with the same settings."""
        return type(self)(self.max_size)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
