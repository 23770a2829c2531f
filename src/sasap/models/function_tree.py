#!/usr/bin/env python3
"""
SASAP - Function Tree Model

Arena representation of a serverless application's call tree:
- Nodes are stored once, addressed by their position in the arena
- Child lists hold arena indices, never node references
- A node_id -> index map gives O(1) lookup
- The tree is immutable after construction
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from sasap.errors import MalformedTree

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class FunctionNode:
    """
    Single computation unit ("function") of the application

    - node_id: stable unique identifier
    - cost: resource units consumed by the function
    - latency: time units the function takes
    - secure: function requires a security-aware partition
    """
    node_id: int
    cost: int
    latency: int
    secure: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.node_id,
            'cost': self.cost,
            'latency': self.latency,
            'secure': self.secure
        }

class FunctionTree:
    """
    Rooted tree of FunctionNodes held in an index arena

    Construction validates the single-parent / no-cycle structure and raises
    MalformedTree when the input is not a tree.
    """

    def __init__(self, nodes: Sequence[FunctionNode], edges: Sequence[Tuple[int, int]]):
        if not nodes:
            raise MalformedTree("Tree must contain at least one node")

        self._nodes: List[FunctionNode] = list(nodes)
        self._index: Dict[int, int] = {}
        for idx, node in enumerate(self._nodes):
            if node.node_id in self._index:
                raise MalformedTree(f"Duplicate node id {node.node_id}")
            if node.cost <= 0 or node.latency <= 0:
                raise MalformedTree(
                    f"Node {node.node_id} must have positive cost and latency "
                    f"(cost={node.cost}, latency={node.latency})")
            self._index[node.node_id] = idx

        self._children: List[List[int]] = [[] for _ in self._nodes]
        self._parent: List[Optional[int]] = [None] * len(self._nodes)

        for parent_id, child_id in edges:
            if parent_id not in self._index or child_id not in self._index:
                raise MalformedTree(f"Edge {parent_id} -> {child_id} references an unknown node")
            if parent_id == child_id:
                raise MalformedTree(f"Self loop on node {parent_id}")
            parent_idx = self._index[parent_id]
            child_idx = self._index[child_id]
            if self._parent[child_idx] is not None:
                raise MalformedTree(f"Node {child_id} has more than one parent")
            self._parent[child_idx] = parent_idx
            self._children[parent_idx].append(child_idx)

        roots = [idx for idx, parent in enumerate(self._parent) if parent is None]
        if len(roots) != 1:
            raise MalformedTree(f"Expected exactly one root, found {len(roots)}")
        self._root = roots[0]

        # Single root + single parents still allows a detached cycle
        reached = sum(1 for _ in self._bfs_indices())
        if reached != len(self._nodes):
            raise MalformedTree(
                f"{len(self._nodes) - reached} node(s) unreachable from root {self.root.node_id}")

        logger.debug(f"Function tree built: {len(self._nodes)} nodes, root={self.root.node_id}")

    @classmethod
    def from_parent_list(cls, costs: Sequence[int], latencies: Sequence[int],
                         parents: Sequence[Optional[int]],
                         secure_ids: Sequence[int] = ()) -> 'FunctionTree':
        """
        Build a tree whose node ids are 0..n-1

        Args:
            costs: cost of node i
            latencies: latency of node i
            parents: parent id of node i, None for the root
            secure_ids: ids of nodes requiring secure computation
        """
        if not (len(costs) == len(latencies) == len(parents)):
            raise MalformedTree("costs, latencies and parents must have the same length")

        secure = set(secure_ids)
        nodes = [
            FunctionNode(i, costs[i], latencies[i], i in secure)
            for i in range(len(costs))
        ]
        edges = [(parent, child) for child, parent in enumerate(parents) if parent is not None]
        return cls(nodes, edges)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FunctionTree':
        """Build from {'nodes': [{'id', 'cost', 'latency', 'secure'}], 'edges': [[p, c], ...]}"""
        try:
            nodes = [
                FunctionNode(
                    node_id=int(entry['id']),
                    cost=int(entry['cost']),
                    latency=int(entry['latency']),
                    secure=bool(entry.get('secure', False))
                )
                for entry in data['nodes']
            ]
            edges = [(int(parent), int(child)) for parent, child in data.get('edges', [])]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedTree(f"Invalid tree description: {e}") from e
        return cls(nodes, edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_dict() for node in self._nodes],
            'edges': [list(edge) for edge in self.edges()]
        }

    @property
    def root(self) -> FunctionNode:
        return self._nodes[self._root]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[FunctionNode]:
        return iter(self._nodes)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._index

    @property
    def node_ids(self) -> List[int]:
        return [node.node_id for node in self._nodes]

    @property
    def secure_node_count(self) -> int:
        return sum(1 for node in self._nodes if node.secure)

    def get_node(self, node_id: int) -> FunctionNode:
        try:
            return self._nodes[self._index[node_id]]
        except KeyError:
            raise KeyError(f"Unknown node id {node_id}") from None

    def children(self, node_id: int) -> List[FunctionNode]:
        """Children of a node in insertion order"""
        return [self._nodes[idx] for idx in self._children[self._index_of(node_id)]]

    def parent(self, node_id: int) -> Optional[FunctionNode]:
        parent_idx = self._parent[self._index_of(node_id)]
        return None if parent_idx is None else self._nodes[parent_idx]

    def edges(self) -> List[Tuple[int, int]]:
        """Parent -> child edges in breadth-first order"""
        return [
            (self._nodes[idx].node_id, self._nodes[child].node_id)
            for idx in self._bfs_indices()
            for child in self._children[idx]
        ]

    def breadth_first(self) -> Iterator[FunctionNode]:
        for idx in self._bfs_indices():
            yield self._nodes[idx]

    def preorder(self) -> List[FunctionNode]:
        """
        Left-right (hybrid) traversal

        Stack based: children are pushed right-to-left so the leftmost child
        is visited first.
        """
        order = []
        stack = [self._root]
        while stack:
            idx = stack.pop()
            order.append(self._nodes[idx])
            for child in reversed(self._children[idx]):
                stack.append(child)
        return order

    def subtree_ids(self, node_id: int) -> List[int]:
        """Ids of node_id and all of its descendants, preorder"""
        ids = []
        stack = [self._index_of(node_id)]
        while stack:
            idx = stack.pop()
            ids.append(self._nodes[idx].node_id)
            stack.extend(reversed(self._children[idx]))
        return ids

    def subtree_cost(self, node_id: int) -> int:
        """Minimum cost of the composite function rooted at node_id (node plus descendants)"""
        return sum(self.get_node(nid).cost for nid in self.subtree_ids(node_id))

    def _index_of(self, node_id: int) -> int:
        try:
            return self._index[node_id]
        except KeyError:
            raise KeyError(f"Unknown node id {node_id}") from None

    def _bfs_indices(self) -> Iterator[int]:
        queue = deque([self._root])
        seen = {self._root}
        while queue:
            idx = queue.popleft()
            yield idx
            for child in self._children[idx]:
                if child not in seen:
                    seen.add(child)
                    queue.append(child)
