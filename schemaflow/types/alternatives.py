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

"""Alternatives combinator: try lists, match modes and conditional branching."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from .. import validator
from ..definition import Outcome
from ..errors import ErrorReport, details
from ..ref import Reference, ref
from ..utils import UNDEFINED, assert_that
from .any import AnySchema

MATCH_MODES = ("any", "one", "all")


class ChainState(Enum):
    """Coverage of the conditional entries appended so far."""

    OPEN = "open"
    THEN_ONLY = "then_only"
    OTHERWISE_ONLY = "otherwise_only"
    CLOSED = "closed"


# Coverage of an appended entry -> resulting chain state, None keeps the current one
_TRANSITIONS = {
    "try": None,
    "then": ChainState.THEN_ONLY,
    "otherwise": ChainState.OTHERWISE_ONLY,
    "both": ChainState.CLOSED,
}


def advance(state: ChainState, coverage: str) -> ChainState:
    """Return the chain state after appending an entry with *coverage*.

    Raises:
        ContractViolation: If the chain is already closed.
    """
    assert_that(state is not ChainState.CLOSED, "Unreachable condition")
    return _TRANSITIONS[coverage] or state


@dataclass(frozen=True)
class TryEntry:
    schema: AnySchema


@dataclass(frozen=True)
class Branch:
    is_: AnySchema
    then: Optional[AnySchema] = None
    otherwise: Optional[AnySchema] = None


@dataclass(frozen=True)
class ConditionalEntry:
    """Subject (reference, or the input itself when ``None``) and its ordered branches."""

    ref: Optional[Reference]
    branches: Tuple[Branch, ...]
    switch: bool = False

    @property
    def coverage(self) -> str:
        if any(b.then is not None and b.otherwise is not None for b in self.branches):
            return "both"
        if any(b.otherwise is not None for b in self.branches):
            return "otherwise"
        return "then"


MatchEntry = Union[TryEntry, ConditionalEntry]


def _validate(schema: "AlternativesSchema", value: Any, helpers) -> Outcome:
    state, prefs = helpers.state, helpers.prefs
    matches: List[MatchEntry] = schema._terms["matches"]

    # Match all or one

    mode = schema._flags.get("match")
    if mode is not None:
        hits = 0
        matched = UNDEFINED
        for item in matches:
            result = validator.validate(value, item.schema, state, prefs)
            if not result.errors:
                hits += 1
                matched = result.value

        if not hits:
            return Outcome(value, helpers.error("alternatives.any"))

        if mode == "one":
            return Outcome(matched) if hits == 1 else Outcome(value, helpers.error("alternatives.one"))

        return Outcome(value) if hits == len(matches) else Outcome(value, helpers.error("alternatives.all"))

    # Match any

    errors: List[Any] = []
    for item in matches:
        if isinstance(item, TryEntry):
            result = validator.validate(value, item.schema, state, prefs)
            if not result.errors:
                return Outcome(result.value)

            errors.extend(result.errors)
            continue

        subject = item.ref.resolve(value, state, prefs) if item.ref is not None else value
        for branch in item.branches:
            if not branch.is_._match(subject, state, prefs):
                if branch.otherwise is not None:
                    return _dispatch(branch.otherwise, value, state, prefs)
            elif branch.then is not None:
                return _dispatch(branch.then, value, state, prefs)

    return Outcome(value, _consolidate(errors, helpers))


def _dispatch(schema: AnySchema, value: Any, state, prefs) -> Outcome:
    result = validator.validate(value, schema, state, prefs)
    return Outcome(result.value, result.errors)


def _consolidate(errors: List[Any], helpers) -> Union[ErrorReport, List[Any]]:
    if not errors:
        return helpers.error("alternatives.any")

    if len(errors) == 1:
        return errors

    # Only failures of the base type check at this very location merge into a type list
    types = []
    for report in errors:
        if not isinstance(report, ErrorReport) or len(report.path) != len(helpers.state.path):
            return _nested(errors, helpers)

        type_, _, code = report.code.partition(".")
        if code != "base":
            return _nested(errors, helpers)

        types.append(type_)

    return helpers.error("alternatives.types", {"types": types})


def _nested(errors: List[Any], helpers) -> ErrorReport:
    items = details(errors)
    return helpers.error(
        "alternatives.match",
        {"message": ". ".join(item["message"] for item in items), "details": items},
    )


class AlternativesSchema(AnySchema):
    """Accepts a value matching one (or, by mode, exactly one or all) of its entries."""

    type = "alternatives"
    definition = AnySchema.definition.extend(type="alternatives", validate=_validate)

    def _init_terms(self) -> None:
        self._terms["matches"] = []
        self._flags["chain"] = ChainState.OPEN

    @property
    def ended_switch(self) -> bool:
        return self._flags.get("chain") is ChainState.CLOSED

    def _children(self) -> Iterable[AnySchema]:
        for item in self._terms["matches"]:
            if isinstance(item, TryEntry):
                yield item.schema
                continue
            for branch in item.branches:
                yield from (s for s in (branch.is_, branch.then, branch.otherwise) if s is not None)

    def _term_refs(self) -> Iterable[Reference]:
        return [item.ref for item in self._terms["matches"] if isinstance(item, ConditionalEntry) and item.ref is not None]

    def _append(self, entry: MatchEntry, coverage: str) -> "AlternativesSchema":
        chain = advance(self._flags["chain"], coverage)
        obj = self.clone()
        obj._terms["matches"].append(entry)
        obj._flags["chain"] = chain
        return obj._rebuild()

    def concat(self, source: AnySchema) -> "AlternativesSchema":
        """Merge *source* into a copy of this node, appending its entries after ours."""
        appended = source._terms.get("matches") or []
        chain = self._flags["chain"]
        for item in appended:
            chain = advance(chain, "try" if isinstance(item, TryEntry) else item.coverage)

        obj = super().concat(source)
        obj._flags["chain"] = chain

        mode = obj._flags.get("match")
        if mode is not None:
            for item in obj._terms["matches"]:
                assert_that(isinstance(item, TryEntry), "Cannot combine match mode", mode, "with conditional rules")
        return obj

    def try_(self, *schemas: Any) -> "AlternativesSchema":
        """Append schemas tried in order; the first success wins."""
        assert_that(schemas, "Missing alternative schemas")

        obj = self
        for schema in schemas:
            assert_that(schema is not UNDEFINED, "Invalid undefined schema")
            obj = obj._append(TryEntry(self._compile(schema)), "try")
        return obj

    def match(self, mode: str) -> "AlternativesSchema":
        """Set the match mode: ``any`` (first success), ``one`` or ``all``."""
        assert_that(mode in MATCH_MODES, "Invalid alternatives match mode", mode)
        if mode != "any":
            for item in self._terms["matches"]:
                assert_that(isinstance(item, TryEntry), "Cannot combine match mode", mode, "with conditional rules")

        return self._set_flag("match", UNDEFINED if mode == "any" else mode)

    def conditional(
        self,
        condition: Union[str, Reference, AnySchema],
        *,
        is_: Any = UNDEFINED,
        not_: Any = UNDEFINED,
        then: Any = UNDEFINED,
        otherwise: Any = UNDEFINED,
        switch: Optional[Sequence[dict]] = None,
    ) -> "AlternativesSchema":
        """Append a branch chosen by a referenced value or by probing the input.

        Raises:
            ContractViolation: On invalid options, when a match mode is set or
                when the chain is already closed.
        """
        assert_that(self._flags.get("match") is None, "Cannot combine match mode", self._flags.get("match"), "with conditional rule")
        assert_that(self._flags["chain"] is not ChainState.CLOSED, "Unreachable condition")

        entry = self._build_condition(condition, is_, not_, then, otherwise, switch)
        return self._append(entry, entry.coverage)

    def _build_condition(self, condition, is_, not_, then, otherwise, switch) -> ConditionalEntry:
        if isinstance(condition, AnySchema):
            assert_that(is_ is UNDEFINED, '"is" can not be used with a schema condition')
            assert_that(not_ is UNDEFINED, '"not" can not be used with a schema condition')
            assert_that(switch is None, '"switch" can not be used with a schema condition')
            assert_that(
                then is not UNDEFINED or otherwise is not UNDEFINED,
                'Options must have at least one of "then" or "otherwise"',
            )
            return ConditionalEntry(None, (Branch(condition, self._optional(then), self._optional(otherwise)),))

        assert_that(isinstance(condition, (str, Reference)), "Invalid condition:", condition)
        subject = condition if isinstance(condition, Reference) else ref(condition)
        assert_that(not subject.in_, "Cannot use in() reference as condition")
        assert_that(is_ is UNDEFINED or not_ is UNDEFINED, 'Cannot combine "is" with "not"')

        if switch is None:
            if not_ is not UNDEFINED:
                is_, then, otherwise = not_, otherwise, then
            assert_that(
                then is not UNDEFINED or otherwise is not UNDEFINED,
                'Options must have at least one of "then", "otherwise", or "switch"',
            )
            branch = Branch(self._probe(is_), self._optional(then), self._optional(otherwise))
            return ConditionalEntry(subject, (branch,))

        assert_that(isinstance(switch, (list, tuple)) and switch, '"switch" must be a non-empty list')
        assert_that(is_ is UNDEFINED and not_ is UNDEFINED, 'Cannot combine "switch" with "is" or "not"')
        assert_that(then is UNDEFINED, 'Cannot combine "switch" with "then"')

        branches = []
        for index, item in enumerate(switch):
            last = index == len(switch) - 1
            allowed = {"is", "then", "otherwise"} if last else {"is", "then"}
            assert_that(isinstance(item, dict), "Invalid switch item:", item)
            unknown = sorted(set(item) - allowed)
            assert_that(not unknown, "Switch item contains unknown keys:", ", ".join(unknown))
            assert_that("is" in item, 'Switch statement missing "is"')
            assert_that("then" in item, 'Switch statement missing "then"')

            fallback = UNDEFINED
            if last:
                assert_that(
                    otherwise is UNDEFINED or "otherwise" not in item,
                    'Cannot specify "otherwise" inside and outside a "switch"',
                )
                fallback = item.get("otherwise", otherwise)

            branches.append(Branch(self._probe(item["is"]), self._compile(item["then"]), self._optional(fallback)))

        return ConditionalEntry(subject, tuple(branches), switch=True)

    def _probe(self, is_: Any) -> AnySchema:
        if is_ is UNDEFINED:
            # Truthy check
            return AnySchema().invalid(None, False, 0, "").required()

        schema = self._compile(is_)
        if not isinstance(is_, (AnySchema, Reference)):
            schema = schema.required()
        return schema

    def _optional(self, value: Any) -> Optional[AnySchema]:
        return None if value is UNDEFINED else self._compile(value)

    def label(self, name: str) -> "AlternativesSchema":
        """Label this node and every branch reported under it, probes excepted."""
        obj = super().label(name)
        obj._terms["matches"] = [_relabel(item, name) for item in obj._terms["matches"]]
        return obj._rebuild()


def _relabel(item: MatchEntry, name: str) -> MatchEntry:
    if isinstance(item, TryEntry):
        return TryEntry(item.schema.label(name))

    branches = tuple(
        replace(
            branch,
            then=branch.then.label(name) if branch.then is not None else None,
            otherwise=branch.otherwise.label(name) if branch.otherwise is not None else None,
        )
        for branch in item.branches
    )
    return replace(item, branches=branches)
