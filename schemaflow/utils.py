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

"""Generic primitives used by the engine: sentinel, assertion, clone, equality, path lookup."""

from __future__ import annotations

import copy
import math
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Sequence

from .exceptions import ContractViolation


class _Undefined:
    """Marker for an absent value, distinct from ``None``."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


class _DeepDefault:
    def __repr__(self) -> str:
        return "DEEP_DEFAULT"


# Default marker asking an optional composite to be synthesized when absent
DEEP_DEFAULT = _DeepDefault()


def assert_that(condition: Any, *message: Any) -> None:
    """Raise :class:`ContractViolation` when *condition* is falsy.

    Message parts are joined with a space, non-strings are rendered with ``str``.
    """
    if condition:
        return
    text = " ".join(part if isinstance(part, str) else str(part) for part in message)
    raise ContractViolation(text or "Unknown contract violation")


def deep_clone(value: Any) -> Any:
    """Clone a value tree. Callables and the undefined marker are kept by reference."""
    if value is UNDEFINED or callable(value):
        return value
    return copy.deepcopy(value)


# ---- deep equality ----------------------------------------------------------

_PRIMITIVE = "primitive"
_TEMPORAL = "temporal"
_BINARY = "binary"
_COMPOSITE = "composite"
_IDENTITY = "identity"


def _kind(value: Any) -> str:
    if value is None or value is UNDEFINED or isinstance(value, (bool, int, float, complex, str)):
        return _PRIMITIVE
    if isinstance(value, (datetime, date, time)):
        return _TEMPORAL
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _BINARY
    if isinstance(value, (dict, list, tuple, set, frozenset)):
        return _COMPOSITE
    return _IDENTITY


def _primitive_equal(a: Any, b: Any) -> bool:
    if a is None or a is UNDEFINED or b is None or b is UNDEFINED:
        return a is b
    # bool is an int subclass but never equals a number here
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, str) or isinstance(b, str):
        return isinstance(a, str) and isinstance(b, str) and a == b
    return a == b


def _temporal_equal(a: Any, b: Any) -> bool:
    # datetime is a date subclass, compare exact kinds first
    if type(a) is not type(b) and not (isinstance(a, datetime) and isinstance(b, datetime)):
        return False
    if isinstance(a, datetime) and (a.tzinfo is None) != (b.tzinfo is None):
        return False
    return a == b


def _binary_equal(a: Any, b: Any) -> bool:
    return bytes(a) == bytes(b)


def _composite_equal(a: Any, b: Any) -> bool:
    if isinstance(a, dict) or isinstance(b, dict):
        if not (isinstance(a, dict) and isinstance(b, dict)) or a.keys() != b.keys():
            return False
        return all(deep_equal(a[key], b[key]) for key in a)

    if isinstance(a, (set, frozenset)) or isinstance(b, (set, frozenset)):
        if not (isinstance(a, (set, frozenset)) and isinstance(b, (set, frozenset))):
            return False
        return a == b

    if type(a) is not type(b) or len(a) != len(b):
        return False
    return all(deep_equal(x, y) for x, y in zip(a, b))


_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    _PRIMITIVE: _primitive_equal,
    _TEMPORAL: _temporal_equal,
    _BINARY: _binary_equal,
    _COMPOSITE: _composite_equal,
    _IDENTITY: lambda a, b: a is b,
}


def deep_equal(a: Any, b: Any) -> bool:
    """Type-aware structural equality.

    Values of different kinds are never equal. Floats follow ``==`` so
    ``nan`` never equals itself, even when both sides are the same object.
    """
    kind = _kind(a)
    if kind != _kind(b):
        return False
    if kind == _PRIMITIVE and isinstance(a, float) and math.isnan(a):
        return False
    return _COMPARATORS[kind](a, b)


# ---- path lookup ------------------------------------------------------------

def reach(obj: Any, path: Sequence[Any]) -> Any:
    """Follow *path* into nested mappings and sequences.

    Returns ``UNDEFINED`` when any segment is missing.
    """
    node = obj
    for segment in path:
        if isinstance(node, dict):
            if segment not in node:
                return UNDEFINED
            node = node[segment]
        elif isinstance(node, (list, tuple)):
            index = _as_index(segment)
            if index is None or not -len(node) <= index < len(node):
                return UNDEFINED
            node = node[index]
        else:
            return UNDEFINED
    return node


def _as_index(segment: Any):
    if isinstance(segment, bool):
        return None
    if isinstance(segment, int):
        return segment
    if isinstance(segment, str) and segment.lstrip("-").isdigit():
        return int(segment)
    return None
