import numpy as np
import pytest

from sasap.models.function_tree import FunctionTree


def random_tree(node_count, seed, secure_count=0):
    """Random tree of node_count nodes; node i's parent is drawn from 0..i-1"""
    rng = np.random.default_rng(seed)
    costs = [int(c) for c in rng.integers(1, 21, size=node_count)]
    latencies = [int(l) for l in rng.integers(1, 11, size=node_count)]
    parents = [None] + [int(rng.integers(0, i)) for i in range(1, node_count)]
    return FunctionTree.from_parent_list(costs, latencies, parents, secure_ids=range(secure_count))


@pytest.fixture
def chain_tree():
    """0 -> 1 -> 2 -> 3, cost 10 and latency 5 each"""
    return FunctionTree.from_parent_list(
        costs=[10, 10, 10, 10],
        latencies=[5, 5, 5, 5],
        parents=[None, 0, 1, 2]
    )


@pytest.fixture
def secure_child_tree():
    """Non-secure root with a single secure child, both well under budget"""
    return FunctionTree.from_parent_list(
        costs=[5, 5],
        latencies=[2, 2],
        parents=[None, 0],
        secure_ids=[1]
    )


@pytest.fixture
def branching_tree():
    """
    0 (lat 1)
    |- 1 (lat 2) - 2 (lat 3) - 3 (lat 10)
    |- 4 (lat 3) - 5 (lat 1)
    """
    return FunctionTree.from_parent_list(
        costs=[4, 6, 8, 10, 5, 3],
        latencies=[1, 2, 3, 10, 3, 1],
        parents=[None, 0, 1, 2, 0, 4]
    )


@pytest.fixture
def wide_tree():
    """
    0
    |- 1 - 3, 4
    |- 2 - 5
    """
    return FunctionTree.from_parent_list(
        costs=[1, 2, 3, 4, 5, 6],
        latencies=[1, 1, 1, 1, 1, 1],
        parents=[None, 0, 0, 1, 1, 2]
    )
