#!/usr/bin/env python3

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from sasap.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

MAX_NODE_COUNT = 500
STRATEGIES = ('greedy', 'budget')
COUNT_FIELDS = ('node_count', 'worker_slot_count', 'secure_node_count')

@dataclass
class PartitioningConfig:
    """
    Validated partitioning run parameters

    Ranges:
    - node_count: 1..500
    - cost_limit, latency_limit: > 0
    - worker_slot_count: >= 1
    - secure_node_count: 0..node_count
    """
    node_count: int
    cost_limit: int = 100
    latency_limit: int = 50
    worker_slot_count: int = 4
    secure_node_count: int = 0
    strategy: str = 'greedy'
    secure_affinity: bool = False
    cover_remaining: bool = False
    cross_partition_only: bool = False
    dynamic_latency: bool = False
    jitter_range: Tuple[float, float] = (10.0, 100.0)
    seed: Optional[int] = None
    unit_delay_s: float = 0.1

    def __post_init__(self):
        """Fail fast on out-of-range parameters"""
        for name in COUNT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfiguration(f"{name} must be an integer, got {value!r}")
        if not 1 <= self.node_count <= MAX_NODE_COUNT:
            raise InvalidConfiguration(f"node_count must be between 1 and {MAX_NODE_COUNT}, got {self.node_count}")
        if self.cost_limit <= 0:
            raise InvalidConfiguration(f"cost_limit must be positive, got {self.cost_limit}")
        if self.latency_limit <= 0:
            raise InvalidConfiguration(f"latency_limit must be positive, got {self.latency_limit}")
        if self.worker_slot_count < 1:
            raise InvalidConfiguration(f"worker_slot_count must be at least 1, got {self.worker_slot_count}")
        if not 0 <= self.secure_node_count <= self.node_count:
            raise InvalidConfiguration(
                f"secure_node_count must be between 0 and node_count ({self.node_count}), "
                f"got {self.secure_node_count}")
        if self.strategy not in STRATEGIES:
            raise InvalidConfiguration(f"Unknown strategy '{self.strategy}', expected one of {STRATEGIES}")
        if len(self.jitter_range) != 2 or self.jitter_range[0] < 0 or self.jitter_range[1] < self.jitter_range[0]:
            raise InvalidConfiguration(f"Invalid jitter_range: {self.jitter_range}")
        if self.unit_delay_s < 0:
            raise InvalidConfiguration(f"unit_delay_s must be non-negative, got {self.unit_delay_s}")
        self.jitter_range = (float(self.jitter_range[0]), float(self.jitter_range[1]))

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'PartitioningConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(config) - known
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")
        if 'node_count' not in config:
            raise InvalidConfiguration("node_count is required")
        try:
            return cls(**{k: v for k, v in config.items() if k in known})
        except TypeError as e:
            raise InvalidConfiguration(f"Invalid configuration: {e}") from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'PartitioningConfig':
        """Load a JSON run configuration; an unreadable file yields an empty dict and fails on node_count"""
        return cls.from_dict(read_config_file(path))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['jitter_range'] = list(self.jitter_range)
        return data

    def save(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w') as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save partitioning config to {path}: {e}")
            return False

        logger.debug(f"Partitioning config saved to {path}")
        return True

def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return {}

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load config {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Config {path} does not hold a JSON object")
        return {}
    return data

def create_default_config(configs_dir: str = "configs") -> Path:
    """Write partitioning_config.json with every field at its default and the largest tree size"""
    path = Path(configs_dir) / "partitioning_config.json"
    if not PartitioningConfig(node_count=MAX_NODE_COUNT).save(path):
        raise OSError(f"Could not write default configuration to {path}")

    logger.info(f"Default configuration written to {path}")
    return path

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_default_config()
