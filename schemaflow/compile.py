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

"""Compilation of plain Python literals into schema nodes."""

import re
from datetime import date, datetime, time
from typing import Any

from .exceptions import ContractViolation
from .ref import Reference
from .types import AlternativesSchema, AnySchema, ObjectSchema, StringSchema
from .utils import assert_that

_LITERALS = (str, int, float, bool, bytes, date, datetime, time, Reference)


def compile_schema(value: Any) -> AnySchema:
    """Return *value* as a schema node.

    * schema node: returned unchanged
    * dict: object with those keys
    * list: alternatives trying each item in order
    * compiled regex: string matching the pattern
    * ``None``, scalar or reference: any value restricted to it

    Raises:
        ContractViolation: If *value* cannot describe a schema.
    """
    if isinstance(value, AnySchema):
        return value

    if isinstance(value, dict):
        return ObjectSchema().keys(value)

    if isinstance(value, list):
        assert_that(value, "Invalid empty alternatives list")
        return AlternativesSchema().try_(*value)

    if isinstance(value, re.Pattern):
        return StringSchema().pattern(value)

    if value is None or isinstance(value, _LITERALS):
        return AnySchema().valid(value)

    raise ContractViolation(f"Invalid schema content: {value!r}")
