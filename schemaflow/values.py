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

"""Ordered set of allowed or denied values compared by structural equality."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from .ref import Reference
from .utils import UNDEFINED, assert_that, deep_equal


@dataclass(frozen=True)
class Match:
    """A successful lookup: the stored entry and the reference it came from, if any."""

    value: Any
    ref: Optional[Reference] = None


class Values:
    """Allow/deny list backing a schema node.

    Entries keep their insertion order. References are resolved against the
    validation state at lookup time.
    """

    def __init__(self, values: Optional[Iterable[Any]] = None, refs: Optional[Iterable[Reference]] = None):
        self._values: List[Any] = []
        self._refs: List[Reference] = list(refs or [])
        self._override = False

        for value in values or []:
            self._append(value)

    @property
    def length(self) -> int:
        return len(self._values) + len(self._refs)

    def __len__(self) -> int:
        return self.length

    @property
    def has_refs(self) -> bool:
        return bool(self._refs)

    @property
    def refs(self) -> List[Reference]:
        return list(self._refs)

    @property
    def is_override(self) -> bool:
        return self._override

    def add(self, value: Any, refs: Optional[List[Reference]] = None) -> None:
        """Insert *value*; references are also registered in *refs* when given."""
        if isinstance(value, Reference):
            if not any(existing is value for existing in self._refs):
                self._refs.append(value)
            if refs is not None:
                refs.append(value)
            return

        self._append(value)

    def _append(self, value: Any) -> None:
        if not any(deep_equal(existing, value) for existing in self._values):
            self._values.append(value)

    def remove(self, value: Any) -> None:
        if isinstance(value, Reference):
            self._refs = [ref for ref in self._refs if ref is not value]
            return

        self._values = [existing for existing in self._values if not deep_equal(existing, value)]

    def has(self, value: Any, state=None, prefs=None, insensitive: bool = False) -> bool:
        return self.get(value, state, prefs, insensitive) is not None

    def get(self, value: Any, state=None, prefs=None, insensitive: bool = False) -> Optional[Match]:
        """Look up *value*, returning the matching entry or ``None``."""
        if not self.length:
            return None

        for item in self._values:
            if _same(item, value, insensitive):
                return Match(item)

        if state is None or not self._refs:
            return None

        for ref in self._refs:
            resolved = ref.resolve(value, state, prefs)
            if resolved is UNDEFINED:
                continue

            if ref.in_ and isinstance(resolved, dict):
                items = list(resolved.keys())
            elif ref.in_ and isinstance(resolved, (list, tuple)):
                items = list(resolved)
            else:
                items = [resolved]

            for item in items:
                if _same(item, value, insensitive):
                    return Match(item, ref)

        return None

    def values(self, strip_undefined: bool = False) -> List[Any]:
        """Return the entries in insertion order, references last."""
        entries = [value for value in self._values if not (strip_undefined and value is UNDEFINED)]
        return entries + list(self._refs)

    def override(self) -> "Values":
        self._override = True
        return self

    def clone(self) -> "Values":
        cloned = Values()
        cloned._values = list(self._values)
        cloned._refs = list(self._refs)
        cloned._override = self._override
        return cloned

    def concat(self, source: "Values") -> "Values":
        """Return the union of both sets without touching either operand."""
        assert_that(not source._override, "Cannot concat override set of values")

        merged = Values(self._values, self._refs)
        for value in source._values:
            merged._append(value)
        for ref in source._refs:
            merged.add(ref)
        merged._override = self._override
        return merged

    def merge(self, add: Optional["Values"] = None, remove: Optional["Values"] = None) -> "Values":
        """Return a copy with *add* entries inserted and *remove* entries dropped."""
        merged = self.clone()
        for entry in (add.values() if add is not None else []):
            merged.add(entry)
        for entry in (remove.values() if remove is not None else []):
            merged.remove(entry)
        return merged

    def __repr__(self) -> str:
        return f"Values({self.values()!r})"


def _same(item: Any, value: Any, insensitive: bool) -> bool:
    if insensitive and isinstance(item, str) and isinstance(value, str) and value:
        return item.casefold() == value.casefold()
    return deep_equal(item, value)
