from concurrent.futures import ThreadPoolExecutor

import pytest

from sasap.algorithms.budget_partitioner import BudgetDescentPartitioner
from sasap.errors import InvalidConfiguration
from sasap.models.function_tree import FunctionTree
from sasap.models.partition import Linkage

from conftest import random_tree


class TestBudgetDescent:
    """Depth-first descent from each root child under a shrinking latency budget"""

    def test_branching_tree(self, branching_tree):
        partitioner = BudgetDescentPartitioner(cost_limit=100, latency_limit=10)
        result = partitioner.partition_tree(branching_tree)

        assert [p.node_ids for p in result.partitions] == [[1, 2], [4, 5]]
        assert result.unvisited == [0, 3]
        assert result.linkages == [Linkage(0, 1), Linkage(1, 2), Linkage(0, 4), Linkage(4, 5)]
        assert not result.is_complete

    def test_budget_shrinks_along_path(self):
        # 1->2 passes with the full budget (2+2 <= 5); 2->3 faces 5-2=3 and fails
        tree = FunctionTree.from_parent_list(
            costs=[1, 1, 1, 1],
            latencies=[1, 2, 2, 2],
            parents=[None, 0, 1, 2]
        )
        result = BudgetDescentPartitioner(100, 5).partition_tree(tree)

        assert [p.node_ids for p in result.partitions] == [[1, 2]]
        assert result.unvisited == [0, 3]

    def test_members_in_depth_first_order(self, wide_tree):
        result = BudgetDescentPartitioner(100, 100).partition_tree(wide_tree)

        assert [p.node_ids for p in result.partitions] == [[1, 3, 4], [2, 5]]

    def test_totals_are_member_sums(self, branching_tree):
        result = BudgetDescentPartitioner(100, 10).partition_tree(branching_tree)

        assert (result.partitions[0].total_cost, result.partitions[0].total_latency) == (14, 5)
        assert (result.partitions[1].total_cost, result.partitions[1].total_latency) == (8, 4)

    def test_single_node_tree_is_unvisited(self):
        tree = FunctionTree.from_parent_list([3], [3], [None])
        result = BudgetDescentPartitioner(10, 10).partition_tree(tree)

        assert result.partitions == []
        assert result.unvisited == [0]

    def test_invalid_limits(self):
        with pytest.raises(InvalidConfiguration):
            BudgetDescentPartitioner(cost_limit=10, latency_limit=0)


class TestCoverRemaining:
    """Re-running the descent on the remaining forest"""

    def test_remaining_forest_is_partitioned(self, branching_tree):
        partitioner = BudgetDescentPartitioner(100, 10, cover_remaining=True)
        result = partitioner.partition_tree(branching_tree)

        assert [p.node_ids for p in result.partitions] == [[1, 2], [4, 5], [0], [3]]
        assert result.unvisited == []
        assert result.linkages[-1] == Linkage(2, 3)
        assert len(result.linkages) == len(branching_tree) - 1

    @pytest.mark.parametrize("seed", [3, 17, 23])
    def test_full_coverage_on_random_trees(self, seed):
        tree = random_tree(200, seed)
        result = BudgetDescentPartitioner(60, 12, cover_remaining=True).partition_tree(tree)

        covered = result.covered_node_ids()
        assert sorted(covered) == sorted(tree.node_ids)
        assert len(covered) == len(set(covered))
        assert len(result.linkages) == len(tree) - 1

    @pytest.mark.parametrize("seed", [3, 17])
    def test_unvisited_complements_coverage(self, seed):
        tree = random_tree(200, seed)
        result = BudgetDescentPartitioner(60, 12).partition_tree(tree)

        covered = set(result.covered_node_ids())
        assert covered.isdisjoint(result.unvisited)
        assert covered | set(result.unvisited) == set(tree.node_ids)


class TestBudgetSecureAffinity:
    """Optional secure affinity for the depth-first strategy"""

    def secure_grandchild_tree(self, secure_ids):
        return FunctionTree.from_parent_list(
            costs=[1, 1, 1],
            latencies=[1, 1, 1],
            parents=[None, 0, 1],
            secure_ids=secure_ids
        )

    def test_affinity_blocks_secure_child(self):
        tree = self.secure_grandchild_tree([2])
        partitioner = BudgetDescentPartitioner(100, 10, secure_affinity=True)
        result = partitioner.partition_tree(tree)

        assert [p.node_ids for p in result.partitions] == [[1]]
        assert result.unvisited == [0, 2]
        assert partitioner.get_partitioning_stats()['affinity_cutoffs'] == 1

    def test_without_affinity_secure_child_is_absorbed(self):
        tree = self.secure_grandchild_tree([2])
        result = BudgetDescentPartitioner(100, 10).partition_tree(tree)

        assert [p.node_ids for p in result.partitions] == [[1, 2]]
        assert result.partitions[0].has_secure_member

    def test_secure_seed_accepts_secure_child(self):
        tree = self.secure_grandchild_tree([1, 2])
        result = BudgetDescentPartitioner(100, 10, secure_affinity=True).partition_tree(tree)

        assert [p.node_ids for p in result.partitions] == [[1, 2]]

    def test_from_config(self):
        partitioner = BudgetDescentPartitioner.from_config({
            'cost_limit': 80, 'latency_limit': 30, 'secure_affinity': True
        })
        assert partitioner.secure_affinity
        assert not partitioner.cover_remaining
        assert partitioner.latency_limit == 30


class TestSharedBudgetPartitioner:

    def test_concurrent_runs_keep_exact_counts(self):
        trees = [random_tree(120, seed) for seed in range(6)]
        shared = BudgetDescentPartitioner(60, 12, cover_remaining=True)

        with ThreadPoolExecutor(max_workers=3) as pool:
            results = list(pool.map(shared.partition_tree, trees))

        stats = shared.get_partitioning_stats()
        assert stats['trees_partitioned'] == 6
        assert stats['descents'] == sum(len(r.partitions) for r in results)
        assert stats['unvisited_nodes'] == 0
