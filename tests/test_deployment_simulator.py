import asyncio

import pytest
from cryptography.exceptions import InvalidTag

from sasap.deployment.deployment_simulator import DeploymentSimulator
from sasap.deployment.secure_channel import AESGCMChannel, SecureChannel
from sasap.errors import ChannelClosedError, InvalidConfiguration
from sasap.models.partition import Linkage, Partition


def make_partitions(sizes):
    partitions = []
    next_id = 0
    for pid, size in enumerate(sizes):
        partitions.append(Partition(pid, node_ids=list(range(next_id, next_id + size))))
        next_id += size
    return partitions


class FailingSlotSimulator(DeploymentSimulator):
    """Slot 1 crashes before executing anything"""

    async def _run_slot(self, slot, queue, log, lock):
        if slot == 1:
            raise RuntimeError("worker lost")
        await super()._run_slot(slot, queue, log, lock)


class JoinCheckingChannel(AESGCMChannel):
    """Records whether every slot task had finished when each message was encrypted"""

    def __init__(self):
        super().__init__()
        self.simulator = None
        self.slots_done = []

    def _encrypt(self, plaintext):
        self.slots_done.append(all(t.done() for t in self.simulator.slot_tasks.values()))
        return super()._encrypt(plaintext)


class RecordingChannel(AESGCMChannel):

    def __init__(self):
        super().__init__()
        self.messages = []

    def _encrypt(self, plaintext):
        self.messages.append(plaintext)
        return super()._encrypt(plaintext)


class TestAESGCMChannel:

    def test_round_trip(self):
        channel = AESGCMChannel()
        ciphertext = channel.encrypt(b"Data from node 1 to node 2")

        assert ciphertext != b"Data from node 1 to node 2"
        assert channel.decrypt(ciphertext) == b"Data from node 1 to node 2"

    def test_fresh_nonce_per_message(self):
        channel = AESGCMChannel()
        assert channel.encrypt(b"same") != channel.encrypt(b"same")

    def test_other_key_cannot_decrypt(self):
        ciphertext = AESGCMChannel().encrypt(b"secret")
        with pytest.raises(InvalidTag):
            AESGCMChannel().decrypt(ciphertext)

    def test_explicit_key(self):
        key = bytes(range(32))
        assert AESGCMChannel(key).decrypt(AESGCMChannel(key).encrypt(b"x")) == b"x"
        with pytest.raises(ValueError):
            AESGCMChannel(b"short")

    def test_closed_channel(self):
        channel = AESGCMChannel()
        channel.close()

        assert channel.closed
        with pytest.raises(ChannelClosedError):
            channel.encrypt(b"late")

    def test_is_secure_channel(self):
        assert isinstance(AESGCMChannel(), SecureChannel)


class TestSlotAssignment:

    def test_round_robin_by_creation_order(self):
        simulator = DeploymentSimulator(2, unit_delay_s=0)
        assignments = simulator.assign_slots(make_partitions([1, 1, 1, 1, 1]))

        assert {slot: [p.partition_id for p in ps] for slot, ps in assignments.items()} == {
            0: [0, 2, 4],
            1: [1, 3]
        }

    def test_more_slots_than_partitions(self):
        simulator = DeploymentSimulator(8, unit_delay_s=0)
        assert sorted(simulator.assign_slots(make_partitions([2, 2]))) == [0, 1]

    @pytest.mark.parametrize("slot_count", [0, -2, 2.5, True, "4"])
    def test_invalid_slot_count(self, slot_count):
        with pytest.raises(InvalidConfiguration):
            DeploymentSimulator(slot_count)


class TestDeploy:

    def test_all_nodes_executed_in_partition_order(self):
        partitions = make_partitions([3, 2, 4, 1])
        linkages = [Linkage(0, 1), Linkage(2, 3), Linkage(4, 5)]
        simulator = DeploymentSimulator(3, unit_delay_s=0)

        report = asyncio.run(simulator.deploy(partitions, linkages))

        assert len(report.executions) == 10
        for partition in partitions:
            assert report.executed_nodes(partition.partition_id) == partition.node_ids
        assert report.slot_assignments == {0: [0, 3], 1: [1], 2: [2]}
        assert report.cancelled_slots == []

    def test_each_linkage_replayed_once_and_verified(self):
        linkages = [Linkage(0, 1), Linkage(1, 2), Linkage(0, 3)]
        simulator = DeploymentSimulator(2, unit_delay_s=0)

        report = asyncio.run(simulator.deploy(make_partitions([2, 2]), linkages))

        assert [(c.from_node, c.to_node) for c in report.communications] == [(0, 1), (1, 2), (0, 3)]
        assert all(c.verified for c in report.communications)
        assert simulator.get_deployment_status()['statistics']['linkages_replayed'] == 3

    def test_replays_start_after_slots_join(self):
        channel = JoinCheckingChannel()
        simulator = DeploymentSimulator(2, channel=channel, unit_delay_s=0.001)
        channel.simulator = simulator

        asyncio.run(simulator.deploy(make_partitions([3, 3, 2]), [Linkage(0, 3), Linkage(3, 6)]))

        assert channel.slots_done == [True, True]

    def test_closed_channel_is_fatal(self):
        channel = AESGCMChannel()
        channel.close()
        simulator = DeploymentSimulator(2, channel=channel, unit_delay_s=0)

        with pytest.raises(ChannelClosedError):
            asyncio.run(simulator.deploy(make_partitions([1, 1]), [Linkage(0, 1)]))

    def test_slot_failure_is_reraised_without_replay(self):
        channel = RecordingChannel()
        simulator = FailingSlotSimulator(2, channel=channel, unit_delay_s=0)

        with pytest.raises(RuntimeError, match="worker lost"):
            asyncio.run(simulator.deploy(make_partitions([2, 2, 1]), [Linkage(0, 2)]))

        assert simulator.slot_tasks[0].done() and not simulator.slot_tasks[0].cancelled()
        assert channel.messages == []

    def test_cancelled_slot_does_not_stop_others(self):
        partitions = make_partitions([2, 2])
        simulator = DeploymentSimulator(2, unit_delay_s=0.05)

        async def scenario():
            deployment = asyncio.create_task(simulator.deploy(partitions, []))
            await asyncio.sleep(0.01)
            assert simulator.cancel_slot(0)
            return await deployment

        report = asyncio.run(scenario())

        assert report.cancelled_slots == [0]
        assert report.executed_nodes(0) == []
        assert report.executed_nodes(1) == [2, 3]

    def test_empty_partitioning(self):
        report = asyncio.run(DeploymentSimulator(2, unit_delay_s=0).deploy([], []))

        assert report.executions == []
        assert report.slot_assignments == {}
