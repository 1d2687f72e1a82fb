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

"""Lazy references to sibling, ancestor, root or context data.

Key syntax (with the default ``.`` separator):

* ``a.b``   - sibling key ``a`` then ``b`` (ancestor 1)
* ``.a``    - key ``a`` of the referencing value itself (ancestor 0)
* ``..a``   - same as ``a``; each additional leading separator climbs one level
* ``/a``    - key ``a`` of the root value
* ``$a``    - key ``a`` of the ``context`` preference
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from .utils import UNDEFINED, assert_that, deep_equal, reach

logger = logging.getLogger(__name__)

GLOBAL_PREFIX = "$"
ROOT_PREFIX = "/"

Ancestor = Union[int, str]


class Reference:
    """Pointer resolved against the validation state on demand. Never mutates."""

    def __init__(
        self,
        key: str,
        *,
        ref_type: str,
        ancestor: Optional[Ancestor],
        path: Tuple[str, ...],
        adjust: Optional[Callable[[Any], Any]] = None,
        map_: Optional[Sequence[Tuple[Any, Any]]] = None,
        in_: bool = False,
        separator: str = ".",
    ):
        self.key = key
        self.type = ref_type
        self.ancestor = ancestor
        self.path = path
        self.adjust = adjust
        self.map = tuple(map_) if map_ is not None else None
        self.in_ = in_
        self.separator = separator

    @property
    def display(self) -> str:
        return f"ref:{self.key}"

    @property
    def depth(self) -> int:
        """How many levels above the referencing node the target lives; -1 when not value based."""
        if self.type != "value" or self.ancestor == "root":
            return -1
        return int(self.ancestor)

    def resolve(self, value: Any, state, prefs=None, local: Optional[Mapping[str, Any]] = None) -> Any:
        """Resolve against the value being validated and its ancestors."""
        if self.type == "global":
            context = prefs.context if prefs is not None and prefs.context is not None else {}
            return self._finish(reach(context, self.path))

        if self.ancestor == "root":
            target = state.ancestors[-1] if state.ancestors else value
        elif self.ancestor == 0:
            target = value
        elif self.ancestor > len(state.ancestors):
            logger.debug(f"Reference {self.display} exceeds the schema root at {list(state.path)}")
            return UNDEFINED
        else:
            target = state.ancestors[self.ancestor - 1]

        resolved = UNDEFINED
        shadow = state.mainstay.shadow
        if shadow is not None:
            resolved = shadow.get(self.absolute(state))

        if resolved is UNDEFINED:
            resolved = reach(target, self.path)

        return self._finish(resolved)

    def absolute(self, state) -> Tuple[Any, ...]:
        """Absolute path of the target from the root of the validated value."""
        if self.ancestor == "root":
            return tuple(self.path)
        return tuple(state.path[: len(state.path) - int(self.ancestor)]) + tuple(self.path)

    def _finish(self, resolved: Any) -> Any:
        if self.adjust is not None:
            resolved = self.adjust(resolved)

        if self.map is not None:
            for source, target in self.map:
                if deep_equal(source, resolved):
                    return target

        return resolved

    def __str__(self) -> str:
        return self.display

    def __repr__(self) -> str:
        return f"Reference({self.key!r}, ancestor={self.ancestor!r}, type={self.type!r})"


def is_ref(value: Any) -> bool:
    return isinstance(value, Reference)


def ref(
    key: str,
    *,
    ancestor: Optional[int] = None,
    adjust: Optional[Callable[[Any], Any]] = None,
    map_: Optional[Union[Mapping[Any, Any], Sequence[Tuple[Any, Any]]]] = None,
    in_: bool = False,
    separator: str = ".",
) -> Reference:
    """Create a reference from its key syntax.

    Raises:
        ContractViolation: If the key or any option is invalid.
    """
    assert_that(isinstance(key, str), "Invalid reference key:", key)
    assert_that(isinstance(separator, str) and len(separator) == 1, "Invalid separator:", separator)
    assert_that(adjust is None or callable(adjust), "adjust must be a function")
    assert_that(
        ancestor is None or (isinstance(ancestor, int) and not isinstance(ancestor, bool) and ancestor >= 0),
        "Invalid ancestor:",
        ancestor,
    )

    pairs = None
    if map_ is not None:
        pairs = list(map_.items()) if isinstance(map_, Mapping) else [tuple(pair) for pair in map_]
        assert_that(all(len(pair) == 2 for pair in pairs), "Invalid map pairs")

    if key.startswith(GLOBAL_PREFIX) or key.startswith(ROOT_PREFIX):
        assert_that(ancestor is None, "Cannot combine prefix with ancestor option")
        ref_type = "global" if key.startswith(GLOBAL_PREFIX) else "value"
        resolved_ancestor: Optional[Ancestor] = None if ref_type == "global" else "root"
        path = _split(key[1:], separator)
    elif ancestor is not None:
        assert_that(not key.startswith(separator), "Cannot combine prefix with ancestor option")
        ref_type = "value"
        resolved_ancestor = ancestor
        path = _split(key, separator) if key else ("",)
    else:
        ref_type = "value"
        resolved_ancestor, path = _parse_ancestor(key, separator)

    return Reference(
        key,
        ref_type=ref_type,
        ancestor=resolved_ancestor,
        path=path,
        adjust=adjust,
        map_=pairs,
        in_=in_,
        separator=separator,
    )


def _split(key: str, separator: str) -> Tuple[str, ...]:
    if not key:
        return ()
    return tuple(key.split(separator))


def _parse_ancestor(key: str, separator: str) -> Tuple[int, Tuple[str, ...]]:
    if not key:
        # A bare empty key names the sibling called ''
        return 1, ("",)

    stripped = key.lstrip(separator)
    leading = len(key) - len(stripped)
    if leading == 0:
        return 1, _split(key, separator)
    if leading == 1:
        return 0, _split(stripped, separator)
    return leading - 1, _split(stripped, separator)


def collect_refs(value: Any, sink: list) -> None:
    """Append every reference found in a flat argument mapping or sequence."""
    if isinstance(value, Reference):
        sink.append(value)
    elif isinstance(value, dict):
        for item in value.values():
            collect_refs(item, sink)
    elif isinstance(value, (list, tuple)):
        for item in value:
            collect_refs(item, sink)
