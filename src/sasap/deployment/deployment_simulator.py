#!/usr/bin/env python3
"""
SASAP - Deployment Simulator

Replays a partitioning on a fixed pool of worker slots (vCPUs):
- Partitions are assigned to slots round-robin by creation order
- One asyncio worker task per slot drains that slot's queue, executing the
  member nodes of each partition sequentially (one unit of work per node)
- A single lock guards the shared execution log
- After every slot task has finished, each linkage is replayed once through
  the secure channel as an encrypt -> decrypt round trip
"""

import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from sasap.deployment.secure_channel import AESGCMChannel, SecureChannel
from sasap.errors import InvalidConfiguration
from sasap.models.partition import Linkage, Partition

logger = logging.getLogger(__name__)

@dataclass
class ExecutionRecord:
    slot: int
    partition_id: int
    node_id: int
    completed_at: float

@dataclass
class CommunicationRecord:
    from_node: int
    to_node: int
    ciphertext_size: int
    verified: bool

@dataclass
class DeploymentReport:
    slot_assignments: Dict[int, List[int]]
    executions: List[ExecutionRecord] = field(default_factory=list)
    communications: List[CommunicationRecord] = field(default_factory=list)
    cancelled_slots: List[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def executed_nodes(self, partition_id: int) -> List[int]:
        """Node ids of one partition in execution order"""
        return [r.node_id for r in self.executions if r.partition_id == partition_id]

    def to_dict(self) -> Dict:
        return {
            'slot_assignments': {str(k): v for k, v in self.slot_assignments.items()},
            'executed_nodes': len(self.executions),
            'communications': len(self.communications),
            'verified_communications': sum(1 for c in self.communications if c.verified),
            'cancelled_slots': list(self.cancelled_slots),
            'elapsed_seconds': self.elapsed_seconds
        }

class DeploymentSimulator:
    """
    Worker-slot pool simulating partition deployment

    Node execution order is preserved inside a partition; order across
    slots is whatever the event loop produces. A cancelled slot does not
    affect the other slots and is reported. Any other slot failure is
    re-raised once every slot has settled; ChannelClosedError during
    linkage replay also propagates.
    """

    def __init__(self, worker_slot_count: int, channel: Optional[SecureChannel] = None,
                 unit_delay_s: float = 0.1):
        if isinstance(worker_slot_count, bool) or not isinstance(worker_slot_count, int):
            raise InvalidConfiguration(f"worker_slot_count must be an integer, got {worker_slot_count!r}")
        if worker_slot_count < 1:
            raise InvalidConfiguration(f"worker_slot_count must be at least 1, got {worker_slot_count}")
        if unit_delay_s < 0:
            raise InvalidConfiguration(f"unit_delay_s must be non-negative, got {unit_delay_s}")

        self.worker_slot_count = worker_slot_count
        self.channel = channel if channel is not None else AESGCMChannel()
        self.unit_delay_s = unit_delay_s

        self.slot_tasks: Dict[int, asyncio.Task] = {}

        self.stats = {
            'deployments': 0,
            'nodes_executed': 0,
            'linkages_replayed': 0,
            'slots_cancelled': 0
        }

        logger.info(f"Deployment simulator initialized with {worker_slot_count} worker slots, "
                    f"unit delay {unit_delay_s * 1000:.0f}ms")

    @classmethod
    def from_config(cls, config: Dict, channel: Optional[SecureChannel] = None) -> 'DeploymentSimulator':
        return cls(
            config.get('worker_slot_count', 4),
            channel=channel,
            unit_delay_s=config.get('unit_delay_s', 0.1)
        )

    def assign_slots(self, partitions: Sequence[Partition]) -> Dict[int, List[Partition]]:
        """Round-robin: partition i goes to slot i % W"""
        assignments: Dict[int, List[Partition]] = defaultdict(list)
        for i, partition in enumerate(partitions):
            assignments[i % self.worker_slot_count].append(partition)
        return dict(assignments)

    async def _run_slot(self, slot: int, queue: asyncio.Queue,
                        log: List[ExecutionRecord], lock: asyncio.Lock):
        while not queue.empty():
            partition = queue.get_nowait()
            for node_id in partition.node_ids:
                await asyncio.sleep(self.unit_delay_s)
                async with lock:
                    log.append(ExecutionRecord(slot, partition.partition_id, node_id, time.time()))
                    logger.info(f"Executing node {node_id} of partition {partition.partition_id} on slot {slot}")
            queue.task_done()

    async def _replay_linkage(self, link: Linkage) -> CommunicationRecord:
        await asyncio.sleep(self.unit_delay_s)
        message = f"Data from node {link.from_node} to node {link.to_node}".encode()
        ciphertext = self.channel.encrypt(message)
        plaintext = self.channel.decrypt(ciphertext)
        verified = plaintext == message
        if not verified:
            logger.warning(f"Secure communication {link} failed verification")
        logger.debug(f"Secure communication {link}: {len(ciphertext)} bytes")
        return CommunicationRecord(link.from_node, link.to_node, len(ciphertext), verified)

    def cancel_slot(self, slot: int) -> bool:
        """Cancel one running slot task; the others keep going"""
        task = self.slot_tasks.get(slot)
        if task is None or task.done():
            return False
        return task.cancel()

    async def deploy(self, partitions: Sequence[Partition], linkages: Sequence[Linkage]) -> DeploymentReport:
        start = time.time()
        assignments = self.assign_slots(partitions)

        log: List[ExecutionRecord] = []
        lock = asyncio.Lock()

        self.slot_tasks = {}
        for slot, slot_partitions in assignments.items():
            queue: asyncio.Queue = asyncio.Queue()
            for partition in slot_partitions:
                queue.put_nowait(partition)
            self.slot_tasks[slot] = asyncio.create_task(self._run_slot(slot, queue, log, lock))

        slots = list(self.slot_tasks)
        results = await asyncio.gather(*self.slot_tasks.values(), return_exceptions=True)

        cancelled = []
        for slot, outcome in zip(slots, results):
            if isinstance(outcome, asyncio.CancelledError):
                cancelled.append(slot)
                logger.warning(f"Slot {slot} was cancelled")
            elif isinstance(outcome, BaseException):
                logger.error(f"Slot {slot} failed: {outcome}")
                raise outcome

        communications = []
        for link in linkages:
            communications.append(await self._replay_linkage(link))

        report = DeploymentReport(
            slot_assignments={slot: [p.partition_id for p in ps] for slot, ps in assignments.items()},
            executions=log,
            communications=communications,
            cancelled_slots=cancelled,
            elapsed_seconds=time.time() - start
        )

        self.stats['deployments'] += 1
        self.stats['nodes_executed'] += len(log)
        self.stats['linkages_replayed'] += len(communications)
        self.stats['slots_cancelled'] += len(cancelled)

        logger.info(f"Deployment finished in {report.elapsed_seconds:.2f}s: {len(log)} nodes executed "
                    f"on {len(assignments)} slots, {len(communications)} secure communications")
        return report

    def get_deployment_status(self) -> Dict:
        return {
            'worker_slots': self.worker_slot_count,
            'active_slots': sum(1 for t in self.slot_tasks.values() if not t.done()),
            'channel_closed': self.channel.closed,
            'statistics': self.stats.copy()
        }
