# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import Union
import numpy as np
from scipy.sparse import csc_matrix
from scipy.sparse.linalg import splu, SuperLU
from NodalFlowEngine.basic_structures import Vec, Mat
from NodalFlowEngine.exceptions import SingularMatrixError


def factorize(A: csc_matrix, matrix_name: str = "") -> SuperLU:
    """
    Sparse LU factorization with SuperLU
    :param A: square sparse matrix (CSC)
    :param matrix_name: name used in the error message
    :return: SuperLU object, its solve method can be called repeatedly
    """
    try:
        lu = splu(csc_matrix(A))
    except RuntimeError as e:
        # SuperLU reports "Factor is exactly singular"
        raise SingularMatrixError(matrix_name=matrix_name) from e

    # exactly singular factors are caught above, this catches the numerically singular ones
    diag_u = np.abs(lu.U.diagonal())
    if len(diag_u):
        if not np.all(np.isfinite(diag_u)):
            raise SingularMatrixError(matrix_name=matrix_name)

        if np.min(diag_u) <= np.finfo(float).eps * np.max(diag_u):
            raise SingularMatrixError(matrix_name=matrix_name)

    return lu


def super_lu_linsolver(A: csc_matrix, b: Union[Vec, Mat], matrix_name: str = "") -> Union[Vec, Mat]:
    """
    SuperLU wrapper function for linear system solve A x = b
    :param A: System matrix
    :param b: right hand side
    :param matrix_name: name used in the error message
    :return: solution
    """
    x = factorize(A, matrix_name=matrix_name).solve(b)

    if not np.all(np.isfinite(x)):
        raise SingularMatrixError(matrix_name=matrix_name)

    return x
