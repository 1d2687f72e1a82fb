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

import operator
from typing import Any, Iterable, List

from .. import validator
from ..definition import ArgSpec, Outcome, RuleSpec
from ..utils import UNDEFINED, assert_that
from .any import AnySchema


def _is_limit(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _validate(schema, value, helpers):
    if not isinstance(value, list):
        return Outcome(value, helpers.error("array.base"))

    items: List[AnySchema] = schema._terms["items"]
    if not items:
        return None

    state, prefs = helpers.state, helpers.prefs
    value = list(value)
    ancestors = [value, *state.ancestors]
    errors = []

    for index, item in enumerate(value):
        local = state.localize((*state.path, index), ancestors)

        if len(items) == 1:
            result = validator.validate(item, items[0], local, prefs)
            if result.errors:
                if prefs.abort_early:
                    return Outcome(value, result.errors)
                errors.extend(result.errors)
                continue
            value[index] = result.value
            continue

        for inclusion in items:
            result = validator.validate(item, inclusion, local, prefs)
            if not result.errors:
                value[index] = result.value
                break
        else:
            report = schema.create_error("array.includes", item, {"pos": index}, local, prefs)
            if prefs.abort_early:
                return Outcome(value, report)
            errors.append(report)

    # Stripped items are dropped
    value[:] = [item for item in value if item is not UNDEFINED]
    return Outcome(value, errors or None)


def _count(name: str, compare) -> RuleSpec:
    def validate(value, helpers, args, rule):
        if compare(len(value), args["limit"]):
            return value
        return helpers.error(f"array.{name}", {"limit": args["limit"]})

    return RuleSpec(name, validate, args=(ArgSpec("limit", _is_limit, "must be a positive integer"),))


class ArraySchema(AnySchema):
    type = "array"
    definition = AnySchema.definition.extend(
        type="array",
        validate=_validate,
        rules=[
            _count("min", operator.ge),
            _count("max", operator.le),
            _count("length", operator.eq),
        ],
    )

    def _init_terms(self) -> None:
        self._terms["items"] = []

    def _children(self) -> Iterable[AnySchema]:
        return self._terms["items"]

    def items(self, *schemas: Any) -> "ArraySchema":
        """Allowed item types; each item must match one of them."""
        assert_that(schemas, "Missing item schemas")
        obj = self.clone()
        obj._terms["items"].extend(self._compile(schema) for schema in schemas)
        return obj._rebuild()

    def min(self, limit) -> "ArraySchema":
        return self._add_rule("min", limit=limit)

    def max(self, limit) -> "ArraySchema":
        return self._add_rule("max", limit=limit)

    def length(self, limit) -> "ArraySchema":
        return self._add_rule("length", limit=limit)
