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

"""Per-call validation state threaded through every recursive step."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .utils import UNDEFINED


@dataclass(frozen=True)
class PendingExternal:
    """An external hook queued during finalize, run after the synchronous pass."""

    method: Callable[[Any], Any]
    path: Tuple[Any, ...]
    label: str


class _Branch(dict):
    """Interior node of a :class:`Shadow` tree, distinct from captured dict values."""


class Shadow:
    """Sparse tree of values captured for nodes returning their raw input."""

    def __init__(self):
        self._value: Optional[_Branch] = None

    def set(self, path: Sequence[Any], value: Any) -> None:
        if not path:
            return

        if self._value is None:
            self._value = _Branch()

        node = self._value
        for segment in path[:-1]:
            child = node.get(segment)
            if not isinstance(child, _Branch):
                child = _Branch()
                node[segment] = child
            node = child
        node[path[-1]] = value

    def get(self, path: Sequence[Any]) -> Any:
        node: Any = self._value
        if node is None:
            return UNDEFINED
        for segment in path:
            if not isinstance(node, _Branch) or segment not in node:
                return UNDEFINED
            node = node[segment]
        return UNDEFINED if isinstance(node, _Branch) else node

    def copy(self) -> "Shadow":
        clone = Shadow()
        clone._value = _copy_tree(self._value)
        return clone


def _copy_tree(node: Any) -> Any:
    if not isinstance(node, _Branch):
        return node
    return _Branch((key, _copy_tree(child)) for key, child in node.items())


@dataclass
class Mainstay:
    """Shared context of one top-level validation call."""

    externals: List[PendingExternal] = field(default_factory=list)
    warnings: List[Any] = field(default_factory=list)
    shadow: Optional[Shadow] = None
    _snapshots: List[Tuple[int, int, Optional[Shadow]]] = field(default_factory=list, repr=False)

    def snapshot(self) -> None:
        self._snapshots.append((len(self.externals), len(self.warnings), self.shadow.copy() if self.shadow is not None else None))

    def restore(self) -> None:
        externals, warnings, shadow = self._snapshots.pop()
        del self.externals[externals:]
        del self.warnings[warnings:]
        self.shadow = shadow


class State:
    """Location of the node being validated.

    ``ancestors`` holds the enclosing values, innermost first.
    """

    def __init__(self, path: Sequence[Any], ancestors: Sequence[Any], mainstay: Mainstay):
        self.path: Tuple[Any, ...] = tuple(path)
        self.ancestors: List[Any] = list(ancestors)
        self.mainstay = mainstay

    def localize(self, path: Sequence[Any], ancestors: Sequence[Any]) -> "State":
        return State(path, ancestors, self.mainstay)

    def snapshot(self) -> None:
        self.mainstay.snapshot()

    def restore(self) -> None:
        self.mainstay.restore()

    def __repr__(self) -> str:
        return f"State(path={list(self.path)!r}, depth={len(self.ancestors)})"
