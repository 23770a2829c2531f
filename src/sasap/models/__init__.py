from sasap.models.function_tree import FunctionNode, FunctionTree
from sasap.models.partition import Linkage, Partition, PartitioningResult

__all__ = [
    'FunctionNode',
    'FunctionTree',
    'Linkage',
    'Partition',
    'PartitioningResult',
]
