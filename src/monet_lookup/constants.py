"""
Constants shared across monet-lookup.

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

from enum import Enum

# Multiples of machine epsilon, scaled by magnitude, within which two
# breakpoints are considered the same coordinate.
APPROX_EQUAL_FACTOR = 5.0

# 1-D tables are left to simpler tools.
MIN_DIMENSIONS = 2


class ErrorKind(Enum):
    INVALID_TABLE = "invalid_table"
    DIMENSION_MISMATCH = "dimension_mismatch"
    INDEX_OUT_OF_BOUNDS = "index_out_of_bounds"
    OUT_OF_DOMAIN = "out_of_domain"
    MALFORMED_SOURCE_DATA = "malformed_source_data"
    INTERNAL_CONSISTENCY = "internal_consistency"


# Status codes returned by the numba kernels, which cannot raise typed errors.
STATUS_OK = 0
STATUS_INDEX_OUT_OF_BOUNDS = 1
STATUS_OUT_OF_DOMAIN = 2
STATUS_EMPTY_AXIS = 3
STATUS_OFFSET_OUT_OF_RANGE = 4
