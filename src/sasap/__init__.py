"""
SASAP - Security Aware Serverless Application Partitioning

Partitions a cost/latency weighted function tree into composite functions
and scores the partitioning by QoS satisfaction.
"""

from sasap.algorithms import (
    BudgetDescentPartitioner,
    GreedyTreePartitioner,
    LinkageTracker,
    QoSEvaluator,
    QoSReport,
)
from sasap.deployment import AESGCMChannel, DeploymentSimulator, SecureChannel
from sasap.errors import (
    ChannelClosedError,
    InvalidConfiguration,
    MalformedTree,
    PartitioningError,
    RandomSourceUnavailable,
)
from sasap.models import FunctionNode, FunctionTree, Linkage, Partition, PartitioningResult
from sasap.pipeline import PartitioningPipeline, PartitioningReport
from sasap.utils import PartitioningConfig

__version__ = "0.1.0"

__all__ = [
    'AESGCMChannel',
    'BudgetDescentPartitioner',
    'ChannelClosedError',
    'DeploymentSimulator',
    'FunctionNode',
    'FunctionTree',
    'GreedyTreePartitioner',
    'InvalidConfiguration',
    'Linkage',
    'LinkageTracker',
    'MalformedTree',
    'Partition',
    'PartitioningConfig',
    'PartitioningError',
    'PartitioningPipeline',
    'PartitioningReport',
    'PartitioningResult',
    'QoSEvaluator',
    'QoSReport',
    'RandomSourceUnavailable',
    'SecureChannel',
]
