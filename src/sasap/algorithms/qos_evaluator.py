#!/usr/bin/env python3
"""
SASAP - QoS Evaluator

Scores composite functions against their cost and latency budgets.

Static model, per partition:
- Within both limits (boundary inclusive): 100
- Otherwise: cost_sat = max(0, (L_c - C) * 100 / L_c)
             lat_sat  = max(0, (L_l - T) * 100 / L_l)
             qos      = (cost_sat + lat_sat) / 2
Overall QoS is the mean over partitions, 0 when there are none.

Dynamic latency model (simulated network variance):
- sample latency ~ U(jitter_low, jitter_high) per partition
- penalty = min(sample * 0.1, 25)
- adjusted = max(10, qos - penalty); overall = min(mean(adjusted), 95)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from sasap.errors import InvalidConfiguration, RandomSourceUnavailable
from sasap.models.partition import Partition

logger = logging.getLogger(__name__)

PENALTY_PER_LATENCY_UNIT = 0.1
MAX_LATENCY_PENALTY = 25.0
MIN_ADJUSTED_QOS = 10.0
MAX_OVERALL_QOS = 95.0

@dataclass
class PartitionScore:
    partition_id: int
    total_cost: int
    total_latency: int
    qos: float
    penalty: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'partition_id': self.partition_id,
            'total_cost': self.total_cost,
            'total_latency': self.total_latency,
            'qos': self.qos,
            'penalty': self.penalty
        }

@dataclass
class QoSReport:
    """Per-partition scores plus the partitioning-wide QoS percentage"""
    overall_qos: float
    scores: List[PartitionScore] = field(default_factory=list)
    dynamic: bool = False

    def score_of(self, partition_id: int) -> float:
        for score in self.scores:
            if score.partition_id == partition_id:
                return score.qos
        raise KeyError(f"No score for partition {partition_id}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall_qos': self.overall_qos,
            'dynamic': self.dynamic,
            'scores': [s.to_dict() for s in self.scores]
        }

class QoSEvaluator:
    """
    QoS satisfaction model for a partitioning

    The random source is injected (any object with a numpy-Generator style
    uniform(low, high) method) so the dynamic model can be pinned in tests.
    """

    def __init__(self, cost_limit: int, latency_limit: int,
                 dynamic_latency: bool = False,
                 jitter_range: Tuple[float, float] = (10.0, 100.0),
                 rng: Optional[Any] = None):
        if cost_limit <= 0 or latency_limit <= 0:
            raise InvalidConfiguration(
                f"Limits must be positive (cost_limit={cost_limit}, latency_limit={latency_limit})")
        low, high = jitter_range
        if low < 0 or high < low:
            raise InvalidConfiguration(f"Invalid jitter range: {jitter_range}")

        self.cost_limit = cost_limit
        self.latency_limit = latency_limit
        self.dynamic_latency = dynamic_latency
        self.jitter_range = (float(low), float(high))
        self.rng = rng if rng is not None else np.random.default_rng()

        logger.info(f"QoS evaluator initialized: cost_limit={cost_limit}, latency_limit={latency_limit}, "
                    f"dynamic_latency={dynamic_latency}, jitter_range={self.jitter_range}")

    @classmethod
    def from_config(cls, config: Dict, rng: Optional[Any] = None) -> 'QoSEvaluator':
        if rng is None:
            rng = np.random.default_rng(config.get('seed'))
        return cls(
            config.get('cost_limit', 100),
            config.get('latency_limit', 50),
            dynamic_latency=config.get('dynamic_latency', False),
            jitter_range=tuple(config.get('jitter_range', (10.0, 100.0))),
            rng=rng
        )

    def partition_qos(self, total_cost: int, total_latency: int) -> float:
        """Static satisfaction percentage in [0, 100]"""
        if total_cost <= self.cost_limit and total_latency <= self.latency_limit:
            return 100.0

        cost_sat = max(0.0, (self.cost_limit - total_cost) * 100.0 / self.cost_limit)
        latency_sat = max(0.0, (self.latency_limit - total_latency) * 100.0 / self.latency_limit)
        return (cost_sat + latency_sat) / 2

    def score_partition(self, partition: Partition) -> float:
        return self.partition_qos(partition.total_cost, partition.total_latency)

    def sample_latency(self) -> float:
        """Draw one network latency sample from the injected random source"""
        low, high = self.jitter_range
        try:
            sample = float(self.rng.uniform(low, high))
        except Exception as e:
            raise RandomSourceUnavailable(f"Random source failed: {e}") from e
        if not math.isfinite(sample):
            raise RandomSourceUnavailable(f"Random source returned {sample}")
        return sample

    def latency_penalty(self) -> float:
        """Dynamic latency penalty; zero when the random source is unavailable"""
        try:
            latency = self.sample_latency()
        except RandomSourceUnavailable as e:
            logger.warning(f"{e}; applying zero latency penalty")
            return 0.0
        return min(latency * PENALTY_PER_LATENCY_UNIT, MAX_LATENCY_PENALTY)

    def evaluate(self, partitions: Sequence[Partition]) -> QoSReport:
        scores = []
        for partition in partitions:
            qos = self.score_partition(partition)
            penalty = 0.0
            if self.dynamic_latency:
                penalty = self.latency_penalty()
                qos = max(MIN_ADJUSTED_QOS, qos - penalty)
            scores.append(PartitionScore(
                partition_id=partition.partition_id,
                total_cost=partition.total_cost,
                total_latency=partition.total_latency,
                qos=qos,
                penalty=penalty
            ))
            logger.debug(f"Partition {partition.partition_id}: qos={qos:.2f}% (penalty={penalty:.2f})")

        if scores:
            overall = float(np.mean([s.qos for s in scores]))
            if self.dynamic_latency:
                overall = min(overall, MAX_OVERALL_QOS)
        else:
            overall = 0.0

        logger.info(f"Overall QoS satisfaction: {overall:.2f}% over {len(scores)} partitions")
        return QoSReport(overall_qos=overall, scores=scores, dynamic=self.dynamic_latency)

    def overall_qos(self, partitions: Sequence[Partition]) -> float:
        return self.evaluate(partitions).overall_qos

    @staticmethod
    def best_partition(partitions: Sequence[Partition]) -> Optional[Partition]:
        """Cheapest partition, ties broken by lowest total latency"""
        if not partitions:
            return None
        return min(partitions, key=lambda p: (p.total_cost, p.total_latency))
