#!/usr/bin/env python3
"""
SASAP - Greedy Tree Partitioner (Strategy A)

Breadth-first greedy first-fit partitioning of a function tree:
- Nodes are visited in BFS order starting at the root
- Each node joins the first existing partition (creation order) that keeps
  total cost <= cost limit and total latency <= latency limit
- A secure node only joins a partition that already hosts a secure node
- A node no partition accepts seeds a new partition, even if it alone
  exceeds a budget
- Every parent -> child edge visited is recorded as a linkage
"""

import json
import logging
import threading
import time
from collections import Counter, deque
from typing import Dict, List

from sasap.algorithms.linkage_tracker import LinkageTracker
from sasap.errors import InvalidConfiguration
from sasap.models.function_tree import FunctionNode, FunctionTree
from sasap.models.partition import Partition, PartitioningResult

logger = logging.getLogger(__name__)

class GreedyTreePartitioner:
    """
    Breadth-first greedy first-fit partitioner

    Deterministic: the same tree and limits always give the same partitions
    and the same linkage list.
    """

    strategy_name = 'greedy'

    def __init__(self, cost_limit: int, latency_limit: int):
        if cost_limit <= 0 or latency_limit <= 0:
            raise InvalidConfiguration(
                f"Limits must be positive (cost_limit={cost_limit}, latency_limit={latency_limit})")

        self.cost_limit = cost_limit
        self.latency_limit = latency_limit

        # Guards self.stats; each run counts locally and merges once at the end
        self._stats_lock = threading.Lock()
        self.stats = {
            'trees_partitioned': 0,
            'nodes_processed': 0,
            'partitions_created': 0,
            'secure_rejections': 0,
            'oversized_nodes': 0,
            'total_partitioning_time': 0.0
        }

        logger.info(f"Greedy partitioner initialized: cost_limit={cost_limit}, latency_limit={latency_limit}")

    @classmethod
    def from_config(cls, config: Dict) -> 'GreedyTreePartitioner':
        return cls(config.get('cost_limit', 100), config.get('latency_limit', 50))

    def _place(self, node: FunctionNode, partitions: List[Partition], counters: Counter) -> Partition:
        """First-fit over partitions in creation order, else seed a new one"""
        for partition in partitions:
            if partition.can_accept(node, self.cost_limit, self.latency_limit):
                partition.add(node)
                logger.debug(f"Node {node.node_id} -> partition {partition.partition_id}")
                return partition

            if (node.secure and not partition.has_secure_member and
                    partition.total_cost + node.cost <= self.cost_limit and
                    partition.total_latency + node.latency <= self.latency_limit):
                counters['secure_rejections'] += 1

        if node.cost > self.cost_limit or node.latency > self.latency_limit:
            counters['oversized_nodes'] += 1
            logger.debug(f"Node {node.node_id} exceeds the budget on its own "
                         f"(cost={node.cost}, latency={node.latency})")

        partition = Partition.seeded(len(partitions), node)
        partitions.append(partition)
        counters['partitions_created'] += 1
        logger.debug(f"Node {node.node_id} -> new partition {partition.partition_id}")
        return partition

    def partition_tree(self, tree: FunctionTree) -> PartitioningResult:
        start = time.time()

        partitions: List[Partition] = []
        tracker = LinkageTracker()
        counters: Counter = Counter()
        queue = deque([tree.root])

        while queue:
            node = queue.popleft()
            self._place(node, partitions, counters)
            counters['nodes_processed'] += 1

            for child in tree.children(node.node_id):
                tracker.record(node.node_id, child.node_id)
                queue.append(child)

        elapsed = time.time() - start
        counters['trees_partitioned'] += 1
        counters['total_partitioning_time'] += elapsed
        with self._stats_lock:
            for key, value in counters.items():
                self.stats[key] += value

        logger.info(f"Greedy partitioning completed in {elapsed * 1000:.2f}ms: "
                    f"{len(tree)} nodes -> {len(partitions)} partitions, {len(tracker)} linkages")

        return PartitioningResult(
            strategy=self.strategy_name,
            cost_limit=self.cost_limit,
            latency_limit=self.latency_limit,
            partitions=partitions,
            linkages=tracker.linkages
        )

    def get_partitioning_stats(self) -> Dict:
        with self._stats_lock:
            return self.stats.copy()

    def export_partitions(self, result: PartitioningResult, filename: str):
        """Export a partitioning result to JSON"""
        export_data = {
            'timestamp': time.time(),
            'algorithm': 'Greedy_Tree_Partitioning',
            'result': result.to_dict(),
            'stats': self.get_partitioning_stats()
        }

        with open(filename, 'w') as f:
            json.dump(export_data, f, indent=2)

        logger.info(f"Partitions exported to {filename}")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    # Sample application: gateway fanning out to three services
    tree = FunctionTree.from_parent_list(
        costs=[10, 10, 10, 10, 15, 5, 20],
        latencies=[5, 5, 5, 5, 8, 2, 10],
        parents=[None, 0, 1, 2, 0, 4, 0],
        secure_ids=[4, 5]
    )

    partitioner = GreedyTreePartitioner(cost_limit=25, latency_limit=15)
    result = partitioner.partition_tree(tree)

    print("Greedy Tree Partitioning Results:")
    print("=" * 50)
    for partition in result.partitions:
        secure = " (contains secure nodes)" if partition.has_secure_member else ""
        print(f"Partition {partition.partition_id}: {partition.node_ids} "
              f"cost={partition.total_cost} latency={partition.total_latency}{secure}")
    print("Linkages:")
    for link in result.linkages:
        print(f"  {link}")

    print(f"\nStatistics: {json.dumps(partitioner.get_partitioning_stats(), indent=2)}")
