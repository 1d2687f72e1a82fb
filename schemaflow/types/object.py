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

"""Object type: keyed children validated in declaration order."""

from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .. import validator
from ..definition import Outcome
from ..utils import DEEP_DEFAULT, UNDEFINED, assert_that
from .any import AnySchema


def _validate(schema, value, helpers):
    if not isinstance(value, dict):
        return Outcome(value, helpers.error("object.base"))

    keys: Optional[List[Tuple[Any, AnySchema]]] = schema._terms["keys"]
    if keys is None:
        return None

    state, prefs = helpers.state, helpers.prefs
    value = dict(value)
    ancestors = [value, *state.ancestors]
    errors = []

    for key, child in keys:
        item = value.get(key, UNDEFINED)
        local = state.localize((*state.path, key), ancestors)
        result = validator.validate(item, child, local, prefs)

        if result.errors:
            if prefs.abort_early:
                return Outcome(value, result.errors)
            errors.extend(result.errors)
        elif child._flags.get("result") == "strip" or (result.value is UNDEFINED and item is not UNDEFINED):
            value.pop(key, None)
        elif result.value is not UNDEFINED:
            value[key] = result.value

    # Unknown keys

    known = {key for key, _ in keys}
    allow_unknown = schema._flags.get("unknown", prefs.allow_unknown)
    for key in [key for key in value if key not in known]:
        if prefs.strip_unknown and not schema._flags.get("unknown"):
            value.pop(key)
            continue

        if allow_unknown:
            continue

        local = state.localize((*state.path, key), ancestors)
        report = schema.create_error("object.unknown", value[key], {"child": key}, local, prefs)
        if prefs.abort_early:
            return Outcome(value, report)
        errors.append(report)

    return Outcome(value, errors or None)


class ObjectSchema(AnySchema):
    """Mapping type. Without ``keys()`` any mapping is accepted as is."""

    type = "object"
    definition = AnySchema.definition.extend(type="object", validate=_validate)

    def _init_terms(self) -> None:
        self._terms["keys"] = None

    def _children(self) -> Iterable[AnySchema]:
        return [child for _, child in self._terms["keys"] or []]

    def keys(self, schema: Optional[Mapping[Any, Any]] = None) -> "ObjectSchema":
        """Declare child keys. ``keys({})`` allows no key at all.

        A key declared again replaces its earlier schema.
        """
        assert_that(schema is None or isinstance(schema, Mapping), "Object schema must be a valid object")

        obj = self.clone()
        if schema is None:
            obj._terms["keys"] = None
            return obj._rebuild()

        children = list(obj._terms["keys"] or [])
        for key, child in schema.items():
            assert_that(child is not UNDEFINED, "Invalid undefined schema for key", key)
            compiled = self._compile(child)
            children = [(k, c) for k, c in children if k != key]
            children.append((key, compiled))

        obj._terms["keys"] = children
        return obj._rebuild()

    def append(self, schema: Optional[Mapping[Any, Any]] = None) -> "ObjectSchema":
        if not schema:
            return self
        return self.keys(schema)

    def unknown(self, allow: bool = True) -> "ObjectSchema":
        return self._set_flag("unknown", allow)

    def default(self, value: Any = DEEP_DEFAULT) -> "ObjectSchema":
        """Without argument, build the default from the children's own defaults."""
        return super().default(value)
