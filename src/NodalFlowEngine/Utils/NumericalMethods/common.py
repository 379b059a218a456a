# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numba as nb
from NodalFlowEngine.basic_structures import Vec, IntVec


@nb.njit(cache=True)
def max_abs(x: Vec) -> float:
    """
    Compute max abs efficiently
    :param x: array of values
    :return: max(|x|), 0 for empty arrays
    """
    max_val = 0.0
    for x_val in x:
        x_abs = abs(x_val)
        if x_abs > max_val:
            max_val = x_abs

    return max_val


@nb.njit(cache=True)
def csc_position(indptr: IntVec, indices: IntVec, row: int, col: int) -> int:
    """
    Find the position of an entry in the data array of a CSC matrix
    :param indptr: CSC column pointers
    :param indices: CSC row indices
    :param row: row index
    :param col: column index
    :return: position in data, -1 if the entry is not stored
    """
    for k in range(indptr[col], indptr[col + 1]):
        if indices[k] == row:
            return k
    return -1
