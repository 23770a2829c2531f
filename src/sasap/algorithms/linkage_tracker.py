import logging
from typing import Dict, Iterable, List

from sasap.models.partition import Linkage

logger = logging.getLogger(__name__)

def cross_partition_linkages(linkages: Iterable[Linkage], assignment: Dict[int, int]) -> List[Linkage]:
    """Linkages whose endpoints sit in different partitions under a node -> partition map"""
    return [
        link for link in linkages
        if assignment.get(link.from_node) != assignment.get(link.to_node)
    ]

class LinkageTracker:
    """
    Passive recorder of the parent -> child edges a partitioner visits

    Every visited edge is recorded once, in visit order, regardless of
    whether both endpoints end up in the same partition.
    """

    def __init__(self):
        self._linkages: List[Linkage] = []

    def record(self, from_node: int, to_node: int) -> Linkage:
        link = Linkage(from_node, to_node)
        self._linkages.append(link)
        logger.debug(f"Linkage recorded: {link}")
        return link

    @property
    def linkages(self) -> List[Linkage]:
        return list(self._linkages)

    def __len__(self) -> int:
        return len(self._linkages)

    def cross_partition(self, assignment: Dict[int, int]) -> List[Linkage]:
        return cross_partition_linkages(self._linkages, assignment)

    def clear(self) -> None:
        self._linkages.clear()
