#!/usr/bin/env python3
"""
SASAP - Partitioning pipeline

Tree -> partitioner -> (partitions, linkages) -> QoS evaluator -> report,
with the report optionally handed to the deployment simulator.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from sasap.algorithms.budget_partitioner import BudgetDescentPartitioner
from sasap.algorithms.greedy_partitioner import GreedyTreePartitioner
from sasap.algorithms.linkage_tracker import cross_partition_linkages
from sasap.algorithms.qos_evaluator import QoSEvaluator, QoSReport
from sasap.deployment.deployment_simulator import DeploymentReport, DeploymentSimulator
from sasap.deployment.secure_channel import SecureChannel
from sasap.errors import InvalidConfiguration
from sasap.models.function_tree import FunctionTree
from sasap.models.partition import Linkage, PartitioningResult
from sasap.utils.config_manager import PartitioningConfig

logger = logging.getLogger(__name__)

@dataclass
class PartitioningReport:
    """Everything needed to render a partitioning run"""
    result: PartitioningResult
    qos: QoSReport

    @property
    def overall_qos(self) -> float:
        return self.qos.overall_qos

    @property
    def linkages(self) -> List[Linkage]:
        return self.result.linkages

    def cross_partition_linkages(self) -> List[Linkage]:
        return cross_partition_linkages(self.result.linkages, self.result.assignment())

    def partition_rows(self) -> List[Dict[str, Any]]:
        rows = []
        for partition, score in zip(self.result.partitions, self.qos.scores):
            rows.append({
                'partition_id': partition.partition_id,
                'node_ids': list(partition.node_ids),
                'total_cost': partition.total_cost,
                'total_latency': partition.total_latency,
                'qos': score.qos,
                'secure': partition.has_secure_member
            })
        return rows

    def to_dict(self) -> Dict[str, Any]:
        best = QoSEvaluator.best_partition(self.result.partitions)
        return {
            'strategy': self.result.strategy,
            'cost_limit': self.result.cost_limit,
            'latency_limit': self.result.latency_limit,
            'partitions': self.partition_rows(),
            'overall_qos': self.overall_qos,
            'dynamic_latency': self.qos.dynamic,
            'best_partition': best.partition_id if best is not None else None,
            'linkages': [str(link) for link in self.linkages],
            'cross_partition_linkages': [str(link) for link in self.cross_partition_linkages()],
            'unvisited': list(self.result.unvisited)
        }

    def to_dataframe(self) -> pd.DataFrame:
        columns = ['partition_id', 'node_ids', 'total_cost', 'total_latency', 'qos', 'secure']
        return pd.DataFrame(self.partition_rows(), columns=columns)

    def export_report(self, filename: str):
        export_data = {
            'timestamp': time.time(),
            'report': self.to_dict()
        }
        with open(filename, 'w') as f:
            json.dump(export_data, f, indent=2)

        logger.info(f"Partitioning report exported to {filename}")

class PartitioningPipeline:
    """
    Runs one configured partitioning strategy and scores it

    Configuration is validated up front; InvalidConfiguration is raised
    before any traversal starts.
    """

    def __init__(self, config: Union[PartitioningConfig, Dict[str, Any]],
                 rng: Optional[Any] = None, channel: Optional[SecureChannel] = None):
        if isinstance(config, dict):
            config = PartitioningConfig.from_dict(config)
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.channel = channel

        self.partitioner = self._build_partitioner()
        self.evaluator = QoSEvaluator(
            config.cost_limit,
            config.latency_limit,
            dynamic_latency=config.dynamic_latency,
            jitter_range=config.jitter_range,
            rng=self.rng
        )

        logger.info(f"Partitioning pipeline ready: strategy={config.strategy}, "
                    f"node_count={config.node_count}, worker_slots={config.worker_slot_count}")

    def _build_partitioner(self) -> Union[GreedyTreePartitioner, BudgetDescentPartitioner]:
        if self.config.strategy == 'budget':
            return BudgetDescentPartitioner(
                self.config.cost_limit,
                self.config.latency_limit,
                secure_affinity=self.config.secure_affinity,
                cover_remaining=self.config.cover_remaining
            )
        return GreedyTreePartitioner(self.config.cost_limit, self.config.latency_limit)

    def _check_tree(self, tree: FunctionTree):
        if len(tree) != self.config.node_count:
            raise InvalidConfiguration(
                f"Tree has {len(tree)} nodes but node_count is {self.config.node_count}")
        if tree.secure_node_count != self.config.secure_node_count:
            raise InvalidConfiguration(
                f"Tree has {tree.secure_node_count} secure nodes but secure_node_count "
                f"is {self.config.secure_node_count}")

    def run(self, tree: FunctionTree) -> PartitioningReport:
        self._check_tree(tree)

        result = self.partitioner.partition_tree(tree)
        qos = self.evaluator.evaluate(result.partitions)

        logger.info(f"Pipeline run complete: {len(result.partitions)} partitions, "
                    f"overall QoS {qos.overall_qos:.2f}%")
        return PartitioningReport(result=result, qos=qos)

    async def deploy(self, report: PartitioningReport) -> DeploymentReport:
        simulator = DeploymentSimulator(
            self.config.worker_slot_count,
            channel=self.channel,
            unit_delay_s=self.config.unit_delay_s
        )
        linkages = report.cross_partition_linkages() if self.config.cross_partition_only else report.linkages
        return await simulator.deploy(report.result.partitions, linkages)

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    tree = FunctionTree.from_parent_list(
        costs=[12, 7, 20, 9, 14, 5, 18, 6],
        latencies=[4, 3, 9, 2, 6, 1, 8, 2],
        parents=[None, 0, 0, 1, 1, 2, 2, 4],
        secure_ids=[2, 6]
    )
    pipeline = PartitioningPipeline({
        'node_count': len(tree),
        'cost_limit': 40,
        'latency_limit': 15,
        'worker_slot_count': 2,
        'secure_node_count': 2,
        'seed': 7,
        'unit_delay_s': 0.01
    })

    report = pipeline.run(tree)
    print(json.dumps(report.to_dict(), indent=2))

    deployment = asyncio.run(pipeline.deploy(report))
    print(json.dumps(deployment.to_dict(), indent=2))
