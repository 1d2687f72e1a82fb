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
import re
from typing import Any, Optional, Pattern, Union

from ..definition import ArgSpec, Coerce, Outcome, RuleSpec
from ..utils import UNDEFINED, assert_that
from .any import AnySchema

CASES = ("lower", "upper")


def _is_limit(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _coerce(schema, value, helpers):
    normalized = value

    case = schema.get_rule("case")
    if case is not None:
        normalized = normalized.lower() if case.args["direction"] == "lower" else normalized.upper()

    trim = schema.get_rule("trim")
    if trim is not None and trim.args["enabled"]:
        normalized = normalized.strip()

    return Outcome(normalized)


def _validate(schema, value, helpers):
    if not isinstance(value, str):
        return Outcome(value, helpers.error("string.base"))

    if value == "":
        return Outcome(value, helpers.error("string.empty"))

    return None


def _length(name: str, compare) -> RuleSpec:
    def validate(value, helpers, args, rule):
        if compare(len(value), args["limit"]):
            return value
        return helpers.error(f"string.{name}", {"limit": args["limit"]})

    return RuleSpec(name, validate, args=(ArgSpec("limit", _is_limit, "must be a positive integer"),))


def _pattern(value, helpers, args, rule):
    regex: Pattern = args["regex"]
    found = regex.search(value) is not None
    if found != bool(args["invert"]):
        return value

    if args["name"]:
        return helpers.error("string.pattern.name", {"regex": regex.pattern, "name": args["name"]})
    return helpers.error("string.pattern.base", {"regex": regex.pattern})


def _trim(value, helpers, args, rule):
    if not args["enabled"] or value == value.strip():
        return value
    return helpers.error("string.trim")


def _case(value, helpers, args, rule):
    direction = args["direction"]
    if direction == "lower" and value == value.lower():
        return value
    if direction == "upper" and value == value.upper():
        return value
    return helpers.error(f"string.{direction}case")


class StringSchema(AnySchema):
    type = "string"
    definition = AnySchema.definition.extend(
        type="string",
        coerce=Coerce(_coerce, (str,)),
        validate=_validate,
        rules=[
            _length("min", operator.ge),
            _length("max", operator.le),
            _length("length", operator.eq),
            RuleSpec(
                "pattern",
                _pattern,
                args=(
                    ArgSpec("regex", lambda v: isinstance(v, re.Pattern), "must be a regular expression", ref=False),
                    ArgSpec("name", lambda v: v is None or isinstance(v, str), "must be a string", ref=False),
                    ArgSpec("invert", lambda v: isinstance(v, bool), "must be a boolean", ref=False),
                ),
                multi=True,
            ),
            RuleSpec(
                "trim",
                _trim,
                args=(ArgSpec("enabled", lambda v: isinstance(v, bool), "must be a boolean", ref=False),),
                convert=True,
            ),
            RuleSpec(
                "case",
                _case,
                args=(ArgSpec("direction", lambda v: v in CASES, "must be one of lower, upper", ref=False),),
                convert=True,
            ),
        ],
    )

    def min(self, limit) -> "StringSchema":
        return self._add_rule("min", limit=limit)

    def max(self, limit) -> "StringSchema":
        return self._add_rule("max", limit=limit)

    def length(self, limit) -> "StringSchema":
        return self._add_rule("length", limit=limit)

    def pattern(self, regex: Union[str, Pattern], name: Optional[str] = None, invert: bool = False) -> "StringSchema":
        assert_that(isinstance(regex, (str, re.Pattern)), "regex must be a regular expression")
        compiled = re.compile(regex) if isinstance(regex, str) else regex
        return self._add_rule("pattern", regex=compiled, name=name, invert=invert)

    regex = pattern

    def trim(self, enabled: bool = True) -> "StringSchema":
        return self._add_rule("trim", enabled=enabled)

    def case(self, direction: str) -> "StringSchema":
        return self._add_rule("case", direction=direction)

    def lowercase(self) -> "StringSchema":
        return self.case("lower")

    def uppercase(self) -> "StringSchema":
        return self.case("upper")

    def insensitive(self, enabled: bool = True) -> "StringSchema":
        return self._set_flag("insensitive", True if enabled else UNDEFINED)
