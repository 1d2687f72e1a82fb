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

from typing import Any

from ..definition import Caster, Coerce, Outcome
from ..utils import UNDEFINED, assert_that
from ..values import Values
from .any import AnySchema


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _coerce(schema, value, helpers):
    if isinstance(value, bool):
        return None

    sensitive = bool(schema._flags.get("sensitive"))
    if isinstance(value, str):
        normalized = value if sensitive else value.lower()
        if normalized == "true":
            return Outcome(True)
        if normalized == "false":
            return Outcome(False)

    truthy = schema._terms["truthy"]
    if truthy is not None and truthy.has(value, insensitive=not sensitive):
        return Outcome(True)

    falsy = schema._terms["falsy"]
    if falsy is not None and falsy.has(value, insensitive=not sensitive):
        return Outcome(False)

    return None


def _validate(schema, value, helpers):
    if isinstance(value, bool):
        return None
    return Outcome(value, helpers.error("boolean.base"))


class BooleanSchema(AnySchema):
    """Boolean type; strings ``true``/``false`` and registered truthy/falsy values convert."""

    type = "boolean"
    definition = AnySchema.definition.extend(
        type="boolean",
        coerce=Coerce(_coerce, (str, int, float)),
        validate=_validate,
        cast={
            "number": Caster(_is_bool, int),
            "string": Caster(_is_bool, lambda value: "true" if value else "false"),
        },
    )

    def _init_terms(self) -> None:
        self._terms["truthy"] = None
        self._terms["falsy"] = None

    def truthy(self, *values: Any) -> "BooleanSchema":
        return self._extend_term("truthy", values)

    def falsy(self, *values: Any) -> "BooleanSchema":
        return self._extend_term("falsy", values)

    def _extend_term(self, name: str, values) -> "BooleanSchema":
        assert_that(values, "Missing", name, "values")
        obj = self.clone()
        term = obj._terms[name] if obj._terms[name] is not None else Values()
        for value in values:
            assert_that(value is not UNDEFINED, "Cannot call", name, "with undefined")
            term.add(value)
        obj._terms[name] = term
        return obj

    def sensitive(self, enabled: bool = True) -> "BooleanSchema":
        return self._set_flag("sensitive", True if enabled else UNDEFINED)
