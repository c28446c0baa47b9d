"""
Exceptions raised by lookup tables and the value-or-error result type.

This file is part of monet-lookup.

Copyright (c) 2025 monet-lookup Developers.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from monet_lookup.constants import ErrorKind

T = TypeVar("T")


class LookupTableError(Exception):
    """Base class for all lookup table failures."""

    kind: ErrorKind


class InvalidTableError(LookupTableError):
    kind = ErrorKind.INVALID_TABLE


class DimensionMismatchError(LookupTableError):
    kind = ErrorKind.DIMENSION_MISMATCH

    def __init__(self, message: str, expected: int, received: int):
        super().__init__(message)
        self.expected = expected
        self.received = received


class IndexOutOfBoundsError(LookupTableError, IndexError):
    kind = ErrorKind.INDEX_OUT_OF_BOUNDS

    def __init__(self, message: str, dimension: int | None = None, index: int | None = None):
        super().__init__(message)
        self.dimension = dimension
        self.index = index


class OutOfDomainError(LookupTableError, ValueError):
    """
    Raised when a value is requested outside an axis' first and last breakpoints.

    Attributes:
        dimension: Index of the axis that is out of bounds.
        value: The offending query value.
        lower: First breakpoint of that axis.
        upper: Last breakpoint of that axis.
    """

    kind = ErrorKind.OUT_OF_DOMAIN

    def __init__(self, message: str, dimension: int, value: float, lower: float, upper: float):
        super().__init__(message)
        self.dimension = dimension
        self.value = value
        self.lower = lower
        self.upper = upper


class MalformedSourceDataError(LookupTableError, ValueError):
    kind = ErrorKind.MALFORMED_SOURCE_DATA

    def __init__(self, reason: str):
        super().__init__(f"Malformed source data: {reason}")
        self.reason = reason


class InternalConsistencyError(LookupTableError, RuntimeError):
    kind = ErrorKind.INTERNAL_CONSISTENCY


@dataclass(frozen=True)
class LookupResult(Generic[T]):
    """Either a value or the error that prevented computing it."""

    value: T | None = None
    error: LookupTableError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return None if self.error is None else self.error.kind

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error if there is one."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
