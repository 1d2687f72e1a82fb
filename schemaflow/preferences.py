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

"""Validation preferences and their JSON Schema check."""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import jsonschema
from jsonschema.exceptions import ValidationError as JsonSchemaError

from .exceptions import ContractViolation

logger = logging.getLogger(__name__)

# Schema cache to avoid reloading the file
_SCHEMA_CACHE: Dict[str, dict] = {}


def get_schema_path() -> Path:
    """Get the path to the preferences JSON Schema bundled with the package."""
    return Path(__file__).parent / "data" / "preferences.schema.json"


def load_preferences_schema() -> dict:
    """Load the preferences JSON Schema.

    Raises:
        FileNotFoundError: If the schema file doesn't exist
        json.JSONDecodeError: If the schema file is invalid JSON
    """
    schema_path = get_schema_path()
    cache_key = str(schema_path)
    if cache_key in _SCHEMA_CACHE:
        return _SCHEMA_CACHE[cache_key]

    if not schema_path.exists():
        raise FileNotFoundError(f"Preferences schema file not found: {schema_path}")

    try:
        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise json.JSONDecodeError(
            f"Invalid JSON in schema file {schema_path}: {e.msg}",
            e.doc,
            e.pos,
        ) from e

    logger.debug(f"Loaded preferences schema from {schema_path}")
    _SCHEMA_CACHE[cache_key] = schema
    return schema


def clear_cache() -> None:
    """Clear the schema cache. Useful for testing."""
    _SCHEMA_CACHE.clear()


def check_preferences(overrides: Mapping[str, Any]) -> None:
    """Validate a preferences override mapping.

    Raises:
        ContractViolation: If an option is unknown or has the wrong type.
    """
    try:
        jsonschema.validate(instance=dict(overrides), schema=load_preferences_schema())
    except JsonSchemaError as e:
        location = ".".join(str(p) for p in e.absolute_path)
        where = f" at '{location}'" if location else ""
        raise ContractViolation(f"Invalid preferences{where}: {e.message}") from e


@dataclass(frozen=True)
class Preferences:
    """Options steering one validation call.

    Nodes may carry their own overrides, merged on top of the call's options.
    """

    abort_early: bool = True
    allow_unknown: bool = False
    cache: bool = True
    context: Optional[Dict[str, Any]] = None
    convert: bool = True
    error_label: str = "path"
    externals: bool = True
    language: Optional[str] = None
    messages: Dict[str, Any] = field(default_factory=dict)
    no_defaults: bool = False
    presence: str = "optional"
    strip_unknown: bool = False
    warnings: bool = False

    def merge(self, overrides: Optional[Mapping[str, Any]]) -> "Preferences":
        """Return new preferences with *overrides* applied on top of these."""
        if not overrides:
            return self

        check_preferences(overrides)
        changes = dict(overrides)
        if "messages" in changes:
            changes["messages"] = {**self.messages, **changes["messages"]}
        return dataclasses.replace(self, **changes)

    def for_matching(self) -> "Preferences":
        """Preferences used when a schema only probes whether a value matches."""
        return dataclasses.replace(self, abort_early=True, externals=False)


DEFAULTS = Preferences()
