#!/usr/bin/env python3
"""
SASAP - Budget-Descending Tree Partitioner (Strategy B)

Depth-first bicriteria partitioning:
- Each direct child of the root not yet visited starts a new partition
- A child c of p is absorbed while p.latency + c.latency <= remaining budget
- The budget passed down is remaining - p.latency; it only shrinks along a path
- With secure affinity, a secure child only joins a partition that already
  holds a secure node

Known incompleteness: the root itself and every branch cut off by the budget
are not reached from any root-child partition. They are reported in
PartitioningResult.unvisited unless cover_remaining is set, in which case
the remaining forest is partitioned by further descents.
"""

import logging
import threading
import time
from collections import Counter
from typing import Dict, Iterator, List, Set, Tuple

from sasap.algorithms.linkage_tracker import LinkageTracker
from sasap.errors import InvalidConfiguration
from sasap.models.function_tree import FunctionNode, FunctionTree
from sasap.models.partition import Partition, PartitioningResult

logger = logging.getLogger(__name__)

class BudgetDescentPartitioner:
    """
    Depth-first latency-budget partitioner

    The cost limit is not a descent criterion; it is carried into the
    result so the evaluator can score against it.
    """

    strategy_name = 'budget'

    def __init__(self, cost_limit: int, latency_limit: int,
                 secure_affinity: bool = False, cover_remaining: bool = False):
        if cost_limit <= 0 or latency_limit <= 0:
            raise InvalidConfiguration(
                f"Limits must be positive (cost_limit={cost_limit}, latency_limit={latency_limit})")

        self.cost_limit = cost_limit
        self.latency_limit = latency_limit
        self.secure_affinity = secure_affinity
        self.cover_remaining = cover_remaining

        # Guards self.stats; each run counts locally and merges once at the end
        self._stats_lock = threading.Lock()
        self.stats = {
            'trees_partitioned': 0,
            'descents': 0,
            'budget_cutoffs': 0,
            'affinity_cutoffs': 0,
            'unvisited_nodes': 0
        }

        logger.info(f"Budget partitioner initialized: cost_limit={cost_limit}, "
                    f"latency_limit={latency_limit}, secure_affinity={secure_affinity}, "
                    f"cover_remaining={cover_remaining}")

    @classmethod
    def from_config(cls, config: Dict) -> 'BudgetDescentPartitioner':
        return cls(
            config.get('cost_limit', 100),
            config.get('latency_limit', 20),
            secure_affinity=config.get('secure_affinity', False),
            cover_remaining=config.get('cover_remaining', False)
        )

    def _admits(self, partition: Partition, parent: FunctionNode,
                child: FunctionNode, budget: int, counters: Counter) -> bool:
        if parent.latency + child.latency > budget:
            counters['budget_cutoffs'] += 1
            return False
        if self.secure_affinity and child.secure and not partition.has_secure_member:
            counters['affinity_cutoffs'] += 1
            return False
        return True

    def _descend(self, tree: FunctionTree, start: FunctionNode, partitions: List[Partition],
                 placed: Set[int], tracker: LinkageTracker, counters: Counter) -> Partition:
        """Grow one partition depth-first from start, preorder"""
        partition = Partition.seeded(len(partitions), start)
        partitions.append(partition)
        placed.add(start.node_id)
        counters['descents'] += 1

        # (node, budget available to its children, remaining children)
        stack: List[Tuple[FunctionNode, int, Iterator[FunctionNode]]] = [
            (start, self.latency_limit, iter(tree.children(start.node_id)))
        ]
        while stack:
            node, budget, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                continue
            if child.node_id in placed or not self._admits(partition, node, child, budget, counters):
                continue

            tracker.record(node.node_id, child.node_id)
            partition.add(child)
            placed.add(child.node_id)
            stack.append((child, budget - node.latency, iter(tree.children(child.node_id))))

        logger.debug(f"Partition {partition.partition_id} grown from node {start.node_id}: {partition.node_ids}")
        return partition

    def partition_tree(self, tree: FunctionTree) -> PartitioningResult:
        start_time = time.time()

        partitions: List[Partition] = []
        tracker = LinkageTracker()
        placed: Set[int] = set()
        counters: Counter = Counter()
        root = tree.root

        for child in tree.children(root.node_id):
            if child.node_id in placed:
                continue
            tracker.record(root.node_id, child.node_id)
            self._descend(tree, child, partitions, placed, tracker, counters)

        if self.cover_remaining:
            # In BFS order an unplaced node's parent is always placed by the time we reach it
            for node in tree.breadth_first():
                if node.node_id in placed:
                    continue
                parent = tree.parent(node.node_id)
                if parent is not None:
                    tracker.record(parent.node_id, node.node_id)
                self._descend(tree, node, partitions, placed, tracker, counters)

        unvisited = [node.node_id for node in tree.breadth_first() if node.node_id not in placed]
        if unvisited:
            counters['unvisited_nodes'] += len(unvisited)
            logger.warning(f"Budget descent left {len(unvisited)} node(s) unvisited; "
                           f"re-run with cover_remaining to partition the remaining forest")

        elapsed = time.time() - start_time
        counters['trees_partitioned'] += 1
        with self._stats_lock:
            for key, value in counters.items():
                self.stats[key] += value

        logger.info(f"Budget partitioning completed in {elapsed * 1000:.2f}ms: "
                    f"{len(placed)}/{len(tree)} nodes -> {len(partitions)} partitions, "
                    f"{len(tracker)} linkages")

        return PartitioningResult(
            strategy=self.strategy_name,
            cost_limit=self.cost_limit,
            latency_limit=self.latency_limit,
            partitions=partitions,
            linkages=tracker.linkages,
            unvisited=unvisited
        )

    def get_partitioning_stats(self) -> Dict:
        with self._stats_lock:
            return self.stats.copy()
