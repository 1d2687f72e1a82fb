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

"""Custom exceptions for the schemaflow validation engine."""

from typing import Any, Dict, List, Optional, Tuple


class SchemaflowError(Exception):
    """Base exception for schemaflow related errors."""
    pass


class ContractViolation(SchemaflowError):
    """Exception raised when the schema builder API is misused."""
    pass


class ValidationError(SchemaflowError):
    """Exception carrying the reports of a failed validation.

    Returned as ``error`` by synchronous validation and raised by
    asynchronous validation.
    """

    def __init__(self, message: str, details: List[Dict[str, Any]], original: Any):
        super().__init__(message)
        self.message = message
        self.details = details
        self.original = original

    def __str__(self) -> str:
        return self.message


class ExternalHookError(SchemaflowError):
    """Exception raised when an external hook fails during async validation."""

    def __init__(self, message: str, path: Tuple[Any, ...] = (), label: Optional[str] = None):
        super().__init__(message)
        self.path = path
        self.label = label
