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

"""Message catalog loading and Jinja2 rendering of error templates."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from jinja2 import Environment, Template

from .utils import UNDEFINED

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "english"

_CATALOG_CACHE: Dict[str, Dict[str, Dict[str, str]]] = {}

_MISSING_TEMPLATE = 'Error code "{{ code }}" is not defined, your custom type is missing the correct messages definition'


def get_catalog_path() -> Path:
    return Path(__file__).parent / "data" / "messages.yaml"


def load_catalog() -> Dict[str, Dict[str, str]]:
    """Load the bundled message catalog (cached)."""
    catalog_path = get_catalog_path()
    cache_key = str(catalog_path)
    if cache_key in _CATALOG_CACHE:
        return _CATALOG_CACHE[cache_key]

    with open(catalog_path, "r", encoding="utf-8") as f:
        catalog = yaml.safe_load(f) or {}

    if DEFAULT_LANGUAGE not in catalog:
        raise ValueError(f"Message catalog {catalog_path} has no '{DEFAULT_LANGUAGE}' section")

    _CATALOG_CACHE[cache_key] = catalog
    return catalog


def clear_cache() -> None:
    """Clear the catalog and compiled template caches. Useful for testing."""
    _CATALOG_CACHE.clear()
    _compile.cache_clear()


def display(value: Any) -> Any:
    """Render a context value the way it appears inside a message."""
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(str(display(item)) for item in value) + "]"
    return value


_env = Environment(autoescape=False, finalize=display, keep_trailing_newline=False)


@lru_cache(maxsize=512)
def _compile(source: str) -> Template:
    return _env.from_string(source)


def lookup_template(
    code: str,
    language: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> str:
    """Find the template for *code*.

    Lookup order: per-language overrides, flat overrides, catalog language,
    catalog default language.
    """
    language = language or DEFAULT_LANGUAGE

    if overrides:
        localized = overrides.get(language)
        if isinstance(localized, Mapping) and code in localized:
            return localized[code]
        flat = overrides.get(code)
        if isinstance(flat, str):
            return flat

    catalog = load_catalog()
    section = catalog.get(language)
    if section is None:
        logger.warning(f"Unknown message language '{language}', falling back to '{DEFAULT_LANGUAGE}'")
        section = catalog[DEFAULT_LANGUAGE]

    template = section.get(code) or catalog[DEFAULT_LANGUAGE].get(code)
    if template is None:
        return _MISSING_TEMPLATE
    return template


def render(template: str, context: Mapping[str, Any], code: str = "") -> str:
    return _compile(template).render({"code": code, **context})
