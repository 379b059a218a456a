# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import List
import numpy as np
import numba as nb
from scipy.sparse import csc_matrix
from NodalFlowEngine.basic_structures import Vec, IntVec


@nb.njit(cache=True)
def sum_per_bus(nbus: int, bus_indices: IntVec, magnitude: Vec) -> Vec:
    """
    Summation of magnitudes per bus (real)
    :param nbus: number of buses
    :param bus_indices: elements' bus indices
    :param magnitude: elements' magnitude to add per bus
    :return: array of size nbus
    """
    assert len(bus_indices) == len(magnitude)
    res = np.zeros(nbus, dtype=np.float64)
    for i in range(len(bus_indices)):
        res[bus_indices[i]] += magnitude[i]
    return res


@nb.njit(cache=True)
def find_islands_numba(node_number: int, indptr: IntVec, indices: IntVec) -> List[IntVec]:
    """
    Method to get the islands of a graph
    This is the non-recursive version
    :param node_number: number of nodes
    :param indptr: index pointers in the CSC scheme
    :param indices: row indices in the CSC scheme
    :return: list of islands, where each element is the sorted array of node indices of the island
    """
    visited = np.zeros(node_number, dtype=np.int32)
    islands = list()
    current_island = np.empty(node_number, dtype=np.int64)
    node_count = 0

    for node in range(node_number):

        if not visited[node]:

            # DFS: store in the island all the reachable nodes from "node"
            stack = [node]
            while len(stack) > 0:
                v = stack.pop()

                if not visited[v]:
                    visited[v] = 1
                    current_island[node_count] = v
                    node_count += 1

                    for i in range(indptr[v], indptr[v + 1]):
                        k = indices[i]
                        if not visited[k]:
                            stack.append(k)

            island = current_island[:node_count].copy()
            island.sort()
            islands.append(island)
            node_count = 0

    return islands


def get_adjacency_matrix(nbus: int, F: IntVec, T: IntVec, active: IntVec) -> csc_matrix:
    """
    Bus-bus adjacency of the in-service branches
    :param nbus: number of buses
    :param F: branches' from bus indices
    :param T: branches' to bus indices
    :param active: branches' status
    :return: symmetric csc_matrix (nbus, nbus)
    """
    idx = np.where(np.asarray(active) != 0)[0]
    rows = np.r_[F[idx], T[idx]]
    cols = np.r_[T[idx], F[idx]]
    data = np.ones(len(rows), dtype=int)
    return csc_matrix((data, (rows, cols)), shape=(nbus, nbus))


def find_islands(nbus: int, F: IntVec, T: IntVec, active: IntVec) -> List[IntVec]:
    """
    Group the buses in electrically connected islands using the in-service branches
    :param nbus: number of buses
    :param F: branches' from bus indices
    :param T: branches' to bus indices
    :param active: branches' status
    :return: list of sorted bus index arrays, one per island
    """
    adj = get_adjacency_matrix(nbus=nbus, F=F, T=T, active=active)
    return find_islands_numba(node_number=nbus,
                              indptr=adj.indptr.astype(np.int64),
                              indices=adj.indices.astype(np.int64))
