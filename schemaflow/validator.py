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

"""Validation engine: per-node evaluation, entry points and the externals scheduler."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from . import errors as error_utils
from .definition import Helpers, Result
from .errors import ErrorReport
from .exceptions import ExternalHookError
from .preferences import DEFAULTS, Preferences
from .ref import Reference
from .state import Mainstay, PendingExternal, Shadow, State
from .utils import DEEP_DEFAULT, UNDEFINED, assert_that, deep_clone, reach

logger = logging.getLogger(__name__)

_NOT_SET = object()


@dataclass
class ValidationResult:
    """Outcome of a synchronous validation call."""

    value: Any
    error: Optional[Exception] = None
    warning: Optional[Dict[str, Any]] = None


# ---- entry points -----------------------------------------------------------

def entry(value: Any, schema, prefs: Optional[Mapping[str, Any]] = None) -> ValidationResult:
    """Validate synchronously. Data errors are returned, never raised.

    Raises:
        ContractViolation: If ``warnings`` is overridden or the schema queued externals.
    """
    settings = DEFAULTS
    if prefs:
        assert_that("warnings" not in prefs, "Cannot override warnings preference in synchronous validation")
        settings = DEFAULTS.merge(prefs)

    result, error, mainstay = _entry(value, schema, settings)
    assert_that(not mainstay.externals, "Schema with external rules must use validate_async()")

    outcome = ValidationResult(result.value, error)
    if mainstay.warnings:
        outcome.warning = error_utils.summarize(mainstay.warnings)
    return outcome


async def entry_async(value: Any, schema, prefs: Optional[Mapping[str, Any]] = None) -> Any:
    """Validate, then run queued externals one at a time in registration order.

    Returns:
        The validated value, or a :class:`ValidationResult` carrying the warnings
        when the ``warnings`` preference is set.

    Raises:
        ValidationError: If the synchronous pass failed.
        ExternalHookError: If an external hook raised.
    """
    settings = DEFAULTS.merge(prefs) if prefs else DEFAULTS

    result, error, mainstay = _entry(value, schema, settings)
    if error is not None:
        raise error

    root = result.value
    for pending in mainstay.externals:
        root = await _run_external(root, pending)

    if not settings.warnings:
        return root

    outcome = ValidationResult(root)
    if mainstay.warnings:
        outcome.warning = error_utils.summarize(mainstay.warnings)
    return outcome


def _entry(value: Any, schema, prefs: Preferences) -> Tuple[Result, Optional[Exception], Mainstay]:
    mainstay = Mainstay()
    state = State((), (), mainstay)
    result = validate(value, schema, state, prefs)
    error = error_utils.process(result.errors, value, prefs)
    return result, error, mainstay


async def _run_external(root: Any, pending: PendingExternal) -> Any:
    path = pending.path
    parent, key = (reach(root, path[:-1]), path[-1]) if path else (None, None)
    node = reach(parent, (key,)) if path else root

    logger.debug(f"Running external hook for '{pending.label}'")
    try:
        output = pending.method(node)
        if inspect.isawaitable(output):
            output = await output
    except Exception as err:
        raise ExternalHookError(f"{err} ({pending.label})", path=path, label=pending.label) from err

    if output is UNDEFINED or output is None or output is node:
        return root

    if not path:
        return output

    assert_that(isinstance(parent, (dict, list)), "Cannot replace external result at", list(path))
    parent[key] = output
    return root


# ---- node evaluation --------------------------------------------------------

def validate(value: Any, schema, state: State, prefs: Preferences) -> Result:
    """Evaluate *value* against one schema node."""
    if schema._preferences:
        prefs = _prefs(schema, prefs)

    if schema._cache is not None and prefs.cache:
        cached = schema._cache.get(value)
        if cached is not None:
            logger.debug(f"Cache hit for {schema.type} at {list(state.path)}")
            return cached

    helpers = Helpers(schema, state, prefs, value)
    definition = schema.definition

    # Prepare

    if definition.prepare is not None and value is not UNDEFINED and prefs.convert:
        prepared = definition.prepare(schema, value, helpers)
        if prepared is not None:
            if prepared.errors:
                return _finalize(prepared.value, prepared.error_list(), helpers)
            value = prepared.value

    # Coerce

    if (
        definition.coerce is not None
        and value is not UNDEFINED
        and prefs.convert
        and definition.coerce.accepts(value)
    ):
        coerced = definition.coerce.method(schema, value, helpers)
        if coerced is not None:
            if coerced.errors:
                return _finalize(coerced.value, coerced.error_list(), helpers)
            value = coerced.value

    # Empty

    empty = schema._flags.get("empty")
    if empty is not None and empty._match(_trim(value, schema), state, DEFAULTS):
        value = UNDEFINED

    # Presence

    presence = schema._flags.get("presence") or ("ignore" if schema.ended_switch else prefs.presence)
    if value is UNDEFINED:
        if presence == "forbidden":
            return _finalize(value, None, helpers)

        if presence == "required":
            return _finalize(value, [schema.create_error("any.required", value, None, state, prefs)], helpers)

        if presence == "optional":
            if schema._flags.get("default") is not DEEP_DEFAULT:
                return _finalize(value, None, helpers)
            value = {}

    elif presence == "forbidden":
        return _finalize(value, [schema.create_error("any.unknown", value, None, state, prefs)], helpers)

    errors: List[Any] = []

    # Allowed values

    insensitive = bool(schema._flags.get("insensitive"))
    if schema._valids is not None:
        match = schema._valids.get(value, state, prefs, insensitive)
        if match is not None:
            if prefs.convert:
                value = match.value
            return _finalize(value, None, helpers)

        if schema._flags.get("only"):
            report = schema.create_error(
                "any.only", value, {"valids": schema._valids.values(strip_undefined=True)}, state, prefs
            )
            if prefs.abort_early:
                return _finalize(value, [report], helpers)
            errors.append(report)

    # Denied values

    if schema._invalids is not None:
        match = schema._invalids.get(value, state, prefs, insensitive)
        if match is not None:
            report = schema.create_error(
                "any.invalid", value, {"invalids": schema._invalids.values(strip_undefined=True)}, state, prefs
            )
            if prefs.abort_early:
                return _finalize(value, [report], helpers)
            errors.append(report)

    # Base type

    if definition.validate is not None:
        helpers.value = value
        base = definition.validate(schema, value, helpers)
        if base is not None:
            value = base.value
            base_errors = base.error_list()
            if base_errors:
                errors.extend(base_errors)
                return _finalize(value, errors, helpers)

    if not schema._rules:
        return _finalize(value, errors, helpers)

    return _rules(value, errors, helpers)


def _rules(value: Any, errors: List[Any], helpers: Helpers) -> Result:
    schema, state, prefs = helpers.schema, helpers.state, helpers.prefs

    for rule in schema._rules:
        spec = schema.definition.rules[rule.name]
        if spec.convert and prefs.convert:
            continue

        ret: Any = _NOT_SET
        args = rule.args
        if rule.resolve:
            args = dict(rule.args)
            for name in rule.resolve:
                arg = spec.arg(name)
                reference = rule.args[name]
                resolved = reference.resolve(value, state, prefs)
                normalized = arg.normalize(resolved) if arg.normalize is not None else resolved
                reason = arg.check(normalized)
                if reason is not None:
                    ret = schema.create_error(
                        "any.ref", resolved, {"arg": name, "ref": reference, "reason": reason}, state, prefs
                    )
                    break
                args[name] = normalized

        if ret is _NOT_SET:
            helpers.value = value
            ret = spec.validate(value, helpers, args, rule)

        reports = _rule_errors(ret, rule)
        if reports is None:
            value = ret
            continue

        if rule.warn:
            state.mainstay.warnings.extend(reports)
            continue

        if prefs.abort_early:
            return _finalize(value, reports, helpers)

        errors.extend(reports)

    return _finalize(value, errors, helpers)


def _rule_errors(ret: Any, rule) -> Optional[List[ErrorReport]]:
    if isinstance(ret, ErrorReport):
        reports = [ret]
    elif isinstance(ret, list) and ret and all(isinstance(item, ErrorReport) for item in ret):
        reports = ret
    else:
        return None

    if rule.message is not None:
        for report in reports:
            report.set_template(rule.message)
    return reports


def _finalize(value: Any, errors: Optional[List[Any]], helpers: Helpers) -> Result:
    schema, state, prefs = helpers.schema, helpers.state, helpers.prefs
    errors = list(errors or [])

    # Failover value

    if errors:
        failover = _default("failover", UNDEFINED, errors, helpers)
        if failover is not UNDEFINED:
            value = failover
            errors = []

    # Error override

    override = schema._flags.get("error")
    if errors and override is not None:
        if callable(override):
            replaced = override(errors)
            errors = list(replaced) if isinstance(replaced, (list, tuple)) else [replaced]
        else:
            errors = [override]

    # Default

    if value is UNDEFINED:
        value = _default("default", value, errors, helpers)

    # Cast

    cast = schema._flags.get("cast")
    if cast is not None and value is not UNDEFINED:
        caster = schema.definition.cast[cast]
        if caster.accepts(value):
            value = caster.to(value)

    # Externals

    externals = schema._terms.get("externals")
    if externals and prefs.externals:
        label = error_utils.label(schema._flags, state, prefs)
        for method in externals:
            state.mainstay.externals.append(PendingExternal(method, state.path, label))

    result = Result(value, errors or None)

    # Raw or stripped result

    mode = schema._flags.get("result")
    if mode is not None:
        result.value = UNDEFINED if mode == "strip" else helpers.original
        if state.mainstay.shadow is None:
            state.mainstay.shadow = Shadow()
        state.mainstay.shadow.set(state.path, value)

    # Cache

    if schema._cache is not None and prefs.cache and schema._cacheable:
        schema._cache.set(helpers.original, result)

    return result


def _default(flag: str, value: Any, errors: List[Any], helpers: Helpers) -> Any:
    schema, state, prefs = helpers.schema, helpers.state, helpers.prefs
    source = schema._flags.get(flag, UNDEFINED)
    if prefs.no_defaults or source is UNDEFINED or source is DEEP_DEFAULT:
        return value

    if isinstance(source, Reference):
        return source.resolve(value, state, prefs)

    if callable(source):
        args = ()
        arity = _arity(source)
        if arity:
            parent = state.ancestors[0] if state.ancestors else UNDEFINED
            args = (deep_clone(parent), prefs)[:arity]

        try:
            return source(*args)
        except Exception as err:
            logger.debug(f"{flag} method raised at {list(state.path)}: {err}")
            errors.append(schema.create_error(f"any.{flag}", None, {"error": err}, state, prefs))
            return UNDEFINED

    if isinstance(source, (dict, list, set)):
        return deep_clone(source)

    return source


def _arity(method) -> int:
    """Number of arguments (parent, prefs) to pass; zero unless a positional parameter is required."""
    try:
        parameters = list(inspect.signature(method).parameters.values())
    except (TypeError, ValueError):
        return 0

    positional = [p for p in parameters if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
    if not any(p.default is p.empty for p in positional):
        return 0
    if any(p.kind is p.VAR_POSITIONAL for p in parameters):
        return 2
    return min(len(positional), 2)


def _prefs(schema, prefs: Preferences) -> Preferences:
    if prefs is DEFAULTS:
        cached = schema._prefs_memo.get("defaults")
        if cached is not None:
            return cached

    merged = prefs.merge(schema._preferences)
    if prefs is DEFAULTS:
        schema._prefs_memo["defaults"] = merged
    return merged


def _trim(value: Any, schema) -> Any:
    if not isinstance(value, str):
        return value

    rule = schema.get_rule("trim")
    if rule is None or not rule.args.get("enabled", True):
        return value
    return value.strip()
