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

import math
import operator
import re
from typing import Any, Callable

from ..definition import ArgSpec, Caster, Coerce, Outcome, RuleSpec
from .any import AnySchema

_NUMERIC = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def _coerce(schema, value, helpers):
    if not _NUMERIC.match(value):
        return None

    text = value.strip()
    try:
        return Outcome(int(text))
    except ValueError:
        return Outcome(float(text))


def _validate(schema, value, helpers):
    if not is_number(value):
        return Outcome(value, helpers.error("number.base"))

    if isinstance(value, float) and math.isinf(value):
        return Outcome(value, helpers.error("number.infinity"))

    return None


def _compare(name: str, compare: Callable[[Any, Any], bool]) -> RuleSpec:
    def validate(value, helpers, args, rule):
        if compare(value, args["limit"]):
            return value
        return helpers.error(f"number.{name}", {"limit": args["limit"]})

    return RuleSpec(name, validate, args=(ArgSpec("limit", is_number, "must be a number"),))


def _integer(value, helpers, args, rule):
    if isinstance(value, int) or float(value).is_integer():
        return value
    return helpers.error("number.integer")


def _multiple(value, helpers, args, rule):
    base = args["base"]
    if value % base == 0:
        return value
    return helpers.error("number.multiple", {"multiple": base})


class NumberSchema(AnySchema):
    type = "number"
    definition = AnySchema.definition.extend(
        type="number",
        coerce=Coerce(_coerce, (str,)),
        validate=_validate,
        rules=[
            _compare("min", operator.ge),
            _compare("max", operator.le),
            _compare("greater", operator.gt),
            _compare("less", operator.lt),
            RuleSpec("integer", _integer),
            RuleSpec(
                "multiple",
                _multiple,
                args=(ArgSpec("base", lambda v: is_number(v) and v > 0, "must be a positive number"),),
            ),
        ],
        cast={"string": Caster(is_number, str)},
    )

    def min(self, limit) -> "NumberSchema":
        return self._add_rule("min", limit=limit)

    def max(self, limit) -> "NumberSchema":
        return self._add_rule("max", limit=limit)

    def greater(self, limit) -> "NumberSchema":
        return self._add_rule("greater", limit=limit)

    def less(self, limit) -> "NumberSchema":
        return self._add_rule("less", limit=limit)

    def integer(self) -> "NumberSchema":
        return self._add_rule("integer")

    def multiple(self, base) -> "NumberSchema":
        return self._add_rule("multiple", base=base)

    def positive(self) -> "NumberSchema":
        return self.greater(0)

    def negative(self) -> "NumberSchema":
        return self.less(0)
