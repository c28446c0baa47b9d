"""
monet-lookup: N-dimensional lookup tables with multilinear interpolation.

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

from monet_lookup.constants import APPROX_EQUAL_FACTOR, MIN_DIMENSIONS, ErrorKind
from monet_lookup.errors import (
    DimensionMismatchError,
    IndexOutOfBoundsError,
    InternalConsistencyError,
    InvalidTableError,
    LookupResult,
    LookupTableError,
    MalformedSourceDataError,
    OutOfDomainError,
)
from monet_lookup.fixed import (
    index_at_2d,
    index_at_3d,
    lookup_by_indices_2d,
    lookup_by_indices_3d,
    lookup_by_values_2d,
    lookup_by_values_3d,
)
from monet_lookup.interpolation import InterpolationEngine
from monet_lookup.table import LookupTable
from monet_lookup.utils import (
    TableData,
    ilerp,
    is_approx_equal,
    is_valid_source_data,
    lerp,
    validate_source_data,
)

__version__ = "0.1.0"

__all__ = [
    "APPROX_EQUAL_FACTOR",
    "MIN_DIMENSIONS",
    "DimensionMismatchError",
    "ErrorKind",
    "IndexOutOfBoundsError",
    "InternalConsistencyError",
    "InterpolationEngine",
    "InvalidTableError",
    "LookupResult",
    "LookupTable",
    "LookupTableError",
    "MalformedSourceDataError",
    "OutOfDomainError",
    "TableData",
    "ilerp",
    "index_at_2d",
    "index_at_3d",
    "is_approx_equal",
    "is_valid_source_data",
    "lerp",
    "lookup_by_indices_2d",
    "lookup_by_indices_3d",
    "lookup_by_values_2d",
    "lookup_by_values_3d",
    "validate_source_data",
]
