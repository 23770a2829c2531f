#!/usr/bin/env python3
"""
SASAP - Partition records

Partition: composite function built by a partitioner
Linkage: parent -> child edge visited while partitioning
PartitioningResult: everything a partitioner hands to the evaluator/simulator
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from sasap.models.function_tree import FunctionNode

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Linkage:
    """Directed edge between two functions encountered during traversal"""
    from_node: int
    to_node: int

    def __str__(self) -> str:
        return f"{self.from_node} -> {self.to_node}"

    def to_dict(self) -> Dict[str, int]:
        return {'from': self.from_node, 'to': self.to_node}

@dataclass
class Partition:
    """
    Composite function: ordered group of nodes deployed as one unit

    node_ids keeps assignment order. Partitions only ever grow by append.
    """
    partition_id: int
    total_cost: int = 0
    total_latency: int = 0
    has_secure_member: bool = False
    node_ids: List[int] = field(default_factory=list)

    @classmethod
    def seeded(cls, partition_id: int, node: FunctionNode) -> 'Partition':
        partition = cls(partition_id)
        partition.add(node)
        return partition

    def can_accept(self, node: FunctionNode, cost_limit: int, latency_limit: int) -> bool:
        """First-fit admission: both budgets hold and secure nodes only join secure partitions"""
        return (self.total_cost + node.cost <= cost_limit and
                self.total_latency + node.latency <= latency_limit and
                (not node.secure or self.has_secure_member))

    def add(self, node: FunctionNode) -> None:
        self.node_ids.append(node.node_id)
        self.total_cost += node.cost
        self.total_latency += node.latency
        if node.secure:
            self.has_secure_member = True

    @property
    def size(self) -> int:
        return len(self.node_ids)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self.node_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            'partition_id': self.partition_id,
            'node_ids': list(self.node_ids),
            'total_cost': self.total_cost,
            'total_latency': self.total_latency,
            'secure': self.has_secure_member
        }

@dataclass
class PartitioningResult:
    """Output of a partitioning strategy"""
    strategy: str
    cost_limit: int
    latency_limit: int
    partitions: List[Partition] = field(default_factory=list)
    linkages: List[Linkage] = field(default_factory=list)
    unvisited: List[int] = field(default_factory=list)

    def assignment(self) -> Dict[int, int]:
        """node_id -> partition_id"""
        return {
            node_id: partition.partition_id
            for partition in self.partitions
            for node_id in partition.node_ids
        }

    def covered_node_ids(self) -> List[int]:
        return [node_id for partition in self.partitions for node_id in partition.node_ids]

    @property
    def is_complete(self) -> bool:
        return not self.unvisited

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy': self.strategy,
            'cost_limit': self.cost_limit,
            'latency_limit': self.latency_limit,
            'partitions': [p.to_dict() for p in self.partitions],
            'linkages': [str(link) for link in self.linkages],
            'unvisited': list(self.unvisited)
        }
