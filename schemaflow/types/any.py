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

"""Base schema node and its copy-on-write builder API."""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .. import validator
from ..cache import Cache
from ..definition import ArgSpec, Definition, RuleEntry, RuleSpec
from ..errors import ErrorReport
from ..preferences import Preferences, check_preferences
from ..ref import Reference, collect_refs
from ..state import State
from ..utils import UNDEFINED, assert_that
from ..values import Values

PRESENCE_MODES = ("optional", "required", "forbidden")


class _Override:
    def __repr__(self) -> str:
        return "OVERRIDE"


# Leading argument of allow()/valid()/invalid() that replaces the existing set
OVERRIDE = _Override()


def _custom(value, helpers, args, rule):
    try:
        ret = args["method"](value, helpers)
    except Exception as err:
        return helpers.error("any.custom", {"error": err})
    return value if ret is None else ret


def _warning(value, helpers, args, rule):
    helpers.warn(args["code"], args["local"])
    return value


ANY_DEFINITION = Definition(type="any").extend(
    rules=[
        RuleSpec(
            "custom",
            _custom,
            args=(ArgSpec("method", callable, "must be a function", ref=False),),
            multi=True,
        ),
        RuleSpec(
            "warning",
            _warning,
            args=(
                ArgSpec("code", lambda v: isinstance(v, str) and bool(v), "must be a non-empty string", ref=False),
                ArgSpec("local", lambda v: v is None or isinstance(v, dict), "must be a dict", ref=False),
            ),
            multi=True,
        ),
    ]
)


class AnySchema:
    """Schema node accepting any value, base of every other type.

    Nodes are immutable once built: every builder method returns a modified clone.
    """

    type = "any"
    definition = ANY_DEFINITION

    def __init__(self):
        self._flags: Dict[str, Any] = {}
        self._terms: Dict[str, Any] = {"externals": []}
        self._rules: List[RuleEntry] = []
        self._valids: Optional[Values] = None
        self._invalids: Optional[Values] = None
        self._refs: List[Reference] = []
        self._cache: Optional[Cache] = None
        self._preferences: Optional[Dict[str, Any]] = None
        self._prefs_memo: Dict[str, Preferences] = {}
        self._cacheable = True
        self._init_terms()

    def _init_terms(self) -> None:
        """Register the type-specific term lists."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} type={self.type}>"

    # ---- copy-on-write plumbing ---------------------------------------------

    def clone(self) -> "AnySchema":
        obj = copy.copy(self)
        obj._flags = dict(self._flags)
        obj._terms = {key: _copy_term(term) for key, term in self._terms.items()}
        obj._rules = list(self._rules)
        obj._valids = self._valids.clone() if self._valids is not None else None
        obj._invalids = self._invalids.clone() if self._invalids is not None else None
        obj._refs = list(self._refs)
        obj._cache = self._cache.spawn() if self._cache is not None else None
        obj._preferences = dict(self._preferences) if self._preferences is not None else None
        obj._prefs_memo = {}
        return obj

    def _rebuild(self) -> "AnySchema":
        refs: List[Reference] = []
        for rule in self._rules:
            collect_refs([rule.args[name] for name in rule.resolve], refs)
        for values in (self._valids, self._invalids):
            if values is not None:
                refs.extend(values.refs)
        for flag in ("default", "failover"):
            if isinstance(self._flags.get(flag), Reference):
                refs.append(self._flags[flag])
        if self._flags.get("empty") is not None:
            refs.extend(self._flags["empty"]._refs)
        for child in self._children():
            refs.extend(child._refs)
        refs.extend(self._term_refs())

        self._refs = refs
        self._cacheable = not refs
        return self

    def _children(self) -> Iterable["AnySchema"]:
        """Schemas nested in the terms of this node."""
        return ()

    def _term_refs(self) -> Iterable[Reference]:
        """References held directly by the terms of this node."""
        return ()

    def _compile(self, value: Any) -> "AnySchema":
        from ..compile import compile_schema

        return compile_schema(value)

    def _set_flag(self, name: str, value: Any) -> "AnySchema":
        obj = self.clone()
        if value is UNDEFINED:
            obj._flags.pop(name, None)
        else:
            obj._flags[name] = value
        return obj._rebuild()

    @property
    def ended_switch(self) -> bool:
        return False

    # ---- allowed and denied values ------------------------------------------

    def allow(self, *values: Any) -> "AnySchema":
        """Add values accepted as is, before any type check."""
        return self._values(values, "_valids", "_invalids")

    def valid(self, *values: Any) -> "AnySchema":
        """Restrict the node to the given values."""
        assert_that(values, "Missing values")
        return self.allow(*values)._set_flag("only", True)

    equal = valid

    def invalid(self, *values: Any) -> "AnySchema":
        return self._values(values, "_invalids", "_valids")

    disallow = invalid
    not_ = invalid

    def only(self, enabled: bool = True) -> "AnySchema":
        return self._set_flag("only", True if enabled else UNDEFINED)

    def _values(self, values, key: str, other: str) -> "AnySchema":
        obj = self.clone()
        if values and values[0] is OVERRIDE:
            values = values[1:]
            setattr(obj, key, Values().override())
            obj._flags.pop("only", None)
            if getattr(obj, other) is not None:
                setattr(obj, other, None)

        for value in values:
            assert_that(value is not OVERRIDE, "Override must be the first value")
            target = getattr(obj, key)
            if target is None:
                target = Values()
                setattr(obj, key, target)
            target.add(value)

            opposite = getattr(obj, other)
            if opposite is not None:
                opposite.remove(value)

        return obj._rebuild()

    # ---- presence -----------------------------------------------------------

    def presence(self, mode: str) -> "AnySchema":
        assert_that(mode in PRESENCE_MODES, "Unknown presence mode", mode)
        return self._set_flag("presence", mode)

    def required(self) -> "AnySchema":
        return self.presence("required")

    exist = required

    def optional(self) -> "AnySchema":
        return self.presence("optional")

    def forbidden(self) -> "AnySchema":
        return self.presence("forbidden")

    # ---- finalize flags -----------------------------------------------------

    def default(self, value: Any = UNDEFINED) -> "AnySchema":
        """Value (or function, or reference) used when the input is absent."""
        _check_in_ref(value)
        return self._set_flag("default", value)

    def failover(self, value: Any = UNDEFINED) -> "AnySchema":
        """Value (or function, or reference) replacing a failed input."""
        _check_in_ref(value)
        return self._set_flag("failover", value)

    def empty(self, schema: Any = UNDEFINED) -> "AnySchema":
        """Treat input matching *schema* as absent."""
        return self._set_flag("empty", UNDEFINED if schema is UNDEFINED else self._compile(schema))

    def error(self, err: Union[Exception, Callable[[List[Any]], Any]]) -> "AnySchema":
        assert_that(isinstance(err, Exception) or callable(err), "Must provide a valid Error object or a function")
        return self._set_flag("error", err)

    def label(self, name: str) -> "AnySchema":
        assert_that(isinstance(name, str) and name, "Label name must be a non-empty string")
        return self._set_flag("label", name)

    def cast(self, to: Optional[str]) -> "AnySchema":
        assert_that(to is None or to in self.definition.cast, "Type", self.type, "does not support casting to", to)
        return self._set_flag("cast", UNDEFINED if to is None else to)

    def raw(self, enabled: bool = True) -> "AnySchema":
        """Return the unconverted input while keeping the converted one for references."""
        return self._set_flag("result", "raw" if enabled else UNDEFINED)

    def strip(self, enabled: bool = True) -> "AnySchema":
        """Remove the value from its parent after validation."""
        return self._set_flag("result", "strip" if enabled else UNDEFINED)

    # ---- preferences and cache ----------------------------------------------

    def prefs(self, **options: Any) -> "AnySchema":
        assert_that("context" not in options, "Cannot override context")
        assert_that("externals" not in options, "Cannot override externals")
        assert_that("warnings" not in options, "Cannot override warnings")
        check_preferences(options)

        obj = self.clone()
        obj._preferences = {**(obj._preferences or {}), **options}
        return obj

    options = prefs

    def cache(self, cache: Optional[Cache] = None) -> "AnySchema":
        obj = self.clone()
        obj._cache = cache if cache is not None else Cache()
        return obj

    # ---- rules --------------------------------------------------------------

    def external(self, method: Callable[[Any], Any]) -> "AnySchema":
        """Queue *method* to run on the validated value after the synchronous pass."""
        assert_that(callable(method), "Method must be a function")
        obj = self.clone()
        obj._terms["externals"].append(method)
        return obj

    def custom(self, method: Callable[[Any, Any], Any]) -> "AnySchema":
        return self._add_rule("custom", method=method)

    def warning(self, code: str, local: Optional[Dict[str, Any]] = None) -> "AnySchema":
        return self._add_rule("warning", code=code, local=local)

    def rule(self, warn: Optional[bool] = None, message: Any = None) -> "AnySchema":
        """Modify the last added rule."""
        assert_that(self._rules, "Cannot apply rules to empty ruleset")
        obj = self.clone()
        last = obj._rules[-1]
        changes: Dict[str, Any] = {}
        if warn is not None:
            changes["warn"] = warn
        if message is not None:
            changes["message"] = message
        obj._rules[-1] = RuleEntry(
            last.name,
            last.args,
            last.resolve,
            changes.get("warn", last.warn),
            changes.get("message", last.message),
        )
        return obj

    def warn(self) -> "AnySchema":
        return self.rule(warn=True)

    def message(self, message: Union[str, Mapping[str, str]]) -> "AnySchema":
        return self.rule(message=message)

    def get_rule(self, name: str) -> Optional[RuleEntry]:
        for rule in reversed(self._rules):
            if rule.name == name:
                return rule
        return None

    def _add_rule(self, rule_name: str, /, **args: Any) -> "AnySchema":
        spec = self.definition.rules[rule_name]
        resolve = []
        for arg in spec.args:
            value = args.get(arg.name)
            if isinstance(value, Reference):
                assert_that(arg.ref, "Argument", arg.name, "of rule", rule_name, "does not support references")
                assert_that(not value.in_, "Invalid in() reference usage in rule", rule_name)
                resolve.append(arg.name)
                continue

            if arg.normalize is not None:
                value = arg.normalize(value)
                args[arg.name] = value
            reason = arg.check(value)
            assert_that(reason is None, rule_name, arg.name, reason)

        obj = self.clone()
        if not spec.multi:
            obj._rules = [rule for rule in obj._rules if rule.name != rule_name]
        obj._rules.append(RuleEntry(rule_name, args, tuple(resolve)))
        return obj._rebuild()

    # ---- composition --------------------------------------------------------

    def concat(self, source: "AnySchema") -> "AnySchema":
        """Merge *source* into a copy of this node; *source* wins on conflicts."""
        assert_that(isinstance(source, AnySchema), "Invalid schema object")
        assert_that(
            self.type == source.type or source.type == "any",
            "Cannot merge type",
            self.type,
            "with another type:",
            source.type,
        )

        obj = self.clone()
        obj._flags.update(source._flags)

        for rule in source._rules:
            if not obj.definition.rules[rule.name].multi:
                obj._rules = [existing for existing in obj._rules if existing.name != rule.name]
            obj._rules.append(rule)

        obj._valids = _merge_values(obj._valids, source._valids, source._invalids)
        obj._invalids = _merge_values(obj._invalids, source._invalids, source._valids)

        for key, term in source._terms.items():
            if key not in obj._terms or term is None:
                continue
            if obj._terms[key] is None:
                obj._terms[key] = _copy_term(term)
            elif isinstance(term, list):
                obj._terms[key] = obj._terms[key] + list(term)
            elif isinstance(term, Values):
                obj._terms[key] = obj._terms[key].concat(term)

        if source._preferences:
            obj._preferences = {**(obj._preferences or {}), **source._preferences}
        if source._cache is not None:
            obj._cache = source._cache.spawn()

        return obj._rebuild()

    # ---- validation ---------------------------------------------------------

    def create_error(self, code: str, value: Any, local: Optional[Mapping[str, Any]], state: State, prefs) -> ErrorReport:
        return ErrorReport(code, value, local, self._flags, state, prefs)

    def _match(self, value: Any, state: State, prefs) -> bool:
        """Probe whether *value* satisfies this node without leaving side effects."""
        state.snapshot()
        try:
            result = validator.validate(value, self, state, prefs.for_matching())
        finally:
            state.restore()
        return not result.errors

    def validate(self, value: Any = UNDEFINED, **prefs: Any) -> "validator.ValidationResult":
        return validator.entry(value, self, prefs)

    async def validate_async(self, value: Any = UNDEFINED, **prefs: Any) -> Any:
        return await validator.entry_async(value, self, prefs)


def _check_in_ref(value: Any) -> None:
    assert_that(not (isinstance(value, Reference) and value.in_), "Cannot use in() reference outside of allowed values")


def _copy_term(term: Any) -> Any:
    if isinstance(term, Values):
        return term.clone()
    if isinstance(term, list):
        return list(term)
    return term


def _merge_values(target: Optional[Values], add: Optional[Values], remove: Optional[Values]) -> Optional[Values]:
    if add is not None and add.is_override:
        return add.clone()

    if target is None:
        return add.clone() if add is not None else None

    merged = target.concat(add) if add is not None else target
    return merged.merge(remove=remove)
