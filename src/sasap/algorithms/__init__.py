from sasap.algorithms.budget_partitioner import BudgetDescentPartitioner
from sasap.algorithms.greedy_partitioner import GreedyTreePartitioner
from sasap.algorithms.linkage_tracker import LinkageTracker, cross_partition_linkages
from sasap.algorithms.qos_evaluator import PartitionScore, QoSEvaluator, QoSReport

__all__ = [
    'BudgetDescentPartitioner',
    'GreedyTreePartitioner',
    'LinkageTracker',
    'PartitionScore',
    'QoSEvaluator',
    'QoSReport',
    'cross_partition_linkages',
]
