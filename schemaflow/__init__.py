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

"""Declarative validation of Python values against composable schemas."""

from typing import Any

from .cache import Cache
from .compile import compile_schema
from .exceptions import ContractViolation, ExternalHookError, SchemaflowError, ValidationError
from .preferences import DEFAULTS, Preferences
from .ref import Reference, is_ref, ref
from .types import (
    OVERRIDE,
    AlternativesSchema,
    AnySchema,
    ArraySchema,
    BooleanSchema,
    NumberSchema,
    ObjectSchema,
    StringSchema,
)
from .utils import UNDEFINED
from .validator import ValidationResult
from .values import Values

__version__ = "0.1.0"


def any_() -> AnySchema:
    return AnySchema()


def alternatives(*schemas: Any) -> AlternativesSchema:
    """Alternatives node, optionally trying *schemas* (or one list of them) in order."""
    schema = AlternativesSchema()
    if len(schemas) == 1 and isinstance(schemas[0], list):
        schemas = tuple(schemas[0])
    return schema.try_(*schemas) if schemas else schema


alt = alternatives


def array() -> ArraySchema:
    return ArraySchema()


def boolean() -> BooleanSchema:
    return BooleanSchema()


bool_ = boolean


def number() -> NumberSchema:
    return NumberSchema()


def object_(keys: Any = None) -> ObjectSchema:
    schema = ObjectSchema()
    return schema.keys(keys) if keys is not None else schema


def string() -> StringSchema:
    return StringSchema()


def valid(*values: Any) -> AnySchema:
    return AnySchema().valid(*values)


def invalid(*values: Any) -> AnySchema:
    return AnySchema().invalid(*values)


def in_(key: str, **options: Any) -> Reference:
    """Reference whose target list items (or dict keys) are each allowed values."""
    return ref(key, in_=True, **options)


def validate(value: Any, schema: Any, **prefs: Any) -> ValidationResult:
    """Validate *value* synchronously; the error is returned, not raised."""
    return compile_schema(schema).validate(value, **prefs)


async def validate_async(value: Any, schema: Any, **prefs: Any) -> Any:
    """Validate *value* then run the schema's external hooks."""
    return await compile_schema(schema).validate_async(value, **prefs)


__all__ = [
    "AlternativesSchema",
    "AnySchema",
    "ArraySchema",
    "BooleanSchema",
    "Cache",
    "ContractViolation",
    "DEFAULTS",
    "ExternalHookError",
    "NumberSchema",
    "OVERRIDE",
    "ObjectSchema",
    "Preferences",
    "Reference",
    "SchemaflowError",
    "StringSchema",
    "UNDEFINED",
    "ValidationError",
    "ValidationResult",
    "Values",
    "alt",
    "alternatives",
    "any_",
    "array",
    "bool_",
    "boolean",
    "compile_schema",
    "in_",
    "invalid",
    "is_ref",
    "number",
    "object_",
    "ref",
    "string",
    "valid",
    "validate",
    "validate_async",
]
