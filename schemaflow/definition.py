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

"""Contract implemented by every schema type, leaf or combinator.

A :class:`Definition` is registered once per type and shared by all of its
nodes. The engine calls its hooks in a fixed order:

* ``prepare(schema, value, helpers)``  - input preparation
* ``coerce.method(schema, value, helpers)`` - type coercion, gated by ``coerce.from_types``
* ``validate(schema, value, helpers)`` - the base type check
* ``rules[name].validate(value, helpers, args, rule)`` - each attached rule

Hooks return an :class:`Outcome` (or ``None`` for "unchanged"); rule tests
return the replacement value, one :class:`ErrorReport` or a list of them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from .errors import ErrorReport
from .utils import UNDEFINED


@dataclass
class Outcome:
    value: Any = UNDEFINED
    errors: Optional[Union[ErrorReport, List[ErrorReport]]] = None

    def error_list(self) -> List[ErrorReport]:
        if self.errors is None:
            return []
        if isinstance(self.errors, list):
            return self.errors
        return [self.errors]


@dataclass
class Result:
    """Output of validating one node."""

    value: Any
    errors: Optional[List[Any]] = None


@dataclass(frozen=True)
class Coerce:
    method: Callable[[Any, Any, "Helpers"], Optional[Outcome]]
    from_types: Optional[Tuple[type, ...]] = None

    def accepts(self, value: Any) -> bool:
        return self.from_types is None or isinstance(value, self.from_types)


@dataclass(frozen=True)
class Caster:
    accepts: Callable[[Any], bool]
    to: Callable[[Any], Any]


@dataclass(frozen=True)
class ArgSpec:
    """Descriptor of one rule argument."""

    name: str
    assert_fn: Optional[Callable[[Any], bool]] = None
    message: str = "is invalid"
    ref: bool = True
    normalize: Optional[Callable[[Any], Any]] = None

    def check(self, value: Any) -> Optional[str]:
        """Return the reason *value* is unacceptable, or ``None``."""
        if self.assert_fn is None or self.assert_fn(value):
            return None
        return self.message


@dataclass(frozen=True)
class RuleSpec:
    name: str
    validate: Callable[..., Any]
    args: Tuple[ArgSpec, ...] = ()
    convert: bool = False
    multi: bool = False

    def arg(self, name: str) -> ArgSpec:
        for spec in self.args:
            if spec.name == name:
                return spec
        raise KeyError(name)


@dataclass(frozen=True)
class RuleEntry:
    """A rule attached to a schema node."""

    name: str
    args: Mapping[str, Any] = field(default_factory=dict)
    resolve: Tuple[str, ...] = ()
    warn: bool = False
    message: Optional[Union[str, Mapping[str, str]]] = None


@dataclass(frozen=True)
class Definition:
    type: str
    prepare: Optional[Callable[[Any, Any, "Helpers"], Optional[Outcome]]] = None
    coerce: Optional[Coerce] = None
    validate: Optional[Callable[[Any, Any, "Helpers"], Optional[Outcome]]] = None
    rules: Mapping[str, RuleSpec] = field(default_factory=dict)
    cast: Mapping[str, Caster] = field(default_factory=dict)

    def extend(self, **changes: Any) -> "Definition":
        """Derive a child type definition; rule and cast tables are merged."""
        if "rules" in changes:
            changes["rules"] = {**self.rules, **{rule.name: rule for rule in changes["rules"]}}
        if "cast" in changes:
            changes["cast"] = {**self.cast, **changes["cast"]}
        return dataclasses.replace(self, **changes)


@dataclass
class Helpers:
    """Callbacks handed to definition hooks for the node being validated."""

    schema: Any
    state: Any
    prefs: Any
    original: Any
    value: Any = field(init=False)

    def __post_init__(self):
        self.value = self.original

    def error(self, code: str, local: Optional[Mapping[str, Any]] = None, state=None) -> ErrorReport:
        return self.schema.create_error(code, self.value, local, state or self.state, self.prefs)

    def warn(self, code: str, local: Optional[Mapping[str, Any]] = None, state=None) -> None:
        self.state.mainstay.warnings.append(self.error(code, local, state))
