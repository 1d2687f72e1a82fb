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

"""Error reports produced during validation and their conversion to exceptions."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from . import messages
from .exceptions import ValidationError
from .utils import UNDEFINED


class ErrorReport:
    """One failed constraint, kept as data until the call completes.

    Combinators inspect and merge reports before anything is rendered, so the
    message is only produced on access.
    """

    def __init__(self, code: str, value: Any, local: Optional[Mapping[str, Any]], flags: Mapping[str, Any], state, prefs):
        self.code = code
        self.value = value
        self.local: Dict[str, Any] = dict(local or {})
        self.flags = flags
        self.state = state
        self.prefs = prefs
        self.path = tuple(state.path)
        self.template: Optional[Union[str, Mapping[str, str]]] = None

    @property
    def type(self) -> str:
        return self.code

    @property
    def context(self) -> Dict[str, Any]:
        context = dict(self.local)
        context.setdefault("label", label(self.flags, self.state, self.prefs))
        if self.value is not UNDEFINED:
            context.setdefault("value", self.value)
        if self.path:
            context.setdefault("key", self.path[-1])
        return context

    @property
    def message(self) -> str:
        template = self._template()
        return messages.render(template, self.context, self.code)

    def set_template(self, template: Union[str, Mapping[str, str], None]) -> None:
        self.template = template

    def _template(self) -> str:
        if isinstance(self.template, str):
            return self.template
        if isinstance(self.template, Mapping) and self.code in self.template:
            return self.template[self.code]
        return messages.lookup_template(self.code, self.prefs.language, self.prefs.messages)

    def to_detail(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "path": list(self.path),
            "type": self.code,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"ErrorReport({self.code!r}, path={list(self.path)!r})"


def format_path(path: Sequence[Any]) -> str:
    text = ""
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool):
            text += f"[{segment}]"
        else:
            if text:
                text += "."
            text += str(segment)
    return text


def label(flags: Mapping[str, Any], state, prefs) -> str:
    """Display name of the node at *state*: explicit label, else its path, else ``value``."""
    if flags.get("label") is not None:
        return flags["label"]

    path = state.path
    if prefs.error_label == "key" and len(path) > 1:
        path = path[-1:]
    return format_path(path) or "value"


def details(errors: Sequence[Any]) -> List[Dict[str, Any]]:
    return [error.to_detail() for error in errors if isinstance(error, ErrorReport)]


def summarize(reports: Sequence[ErrorReport]) -> Dict[str, Any]:
    """Render warnings the way callers receive them: joined message plus details."""
    items = details(reports)
    return {
        "message": ". ".join(item["message"] for item in items),
        "details": items,
    }


def process(errors: Optional[Sequence[Any]], original: Any, prefs) -> Optional[Exception]:
    """Turn the collected reports of a call into the error handed to the caller.

    An exception placed by an error override is returned as is.
    """
    if not errors:
        return None

    for error in errors:
        if isinstance(error, Exception):
            return error

    items = details(errors)
    message = ". ".join(item["message"] for item in items)
    return ValidationError(message, items, original)
