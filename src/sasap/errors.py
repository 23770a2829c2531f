"""
Error taxonomy for SASAP partitioning

Oversized nodes and unsatisfied budgets are not errors; they only show up
as a low QoS score.
"""


class PartitioningError(Exception):
    """Base class for every error raised by the sasap package"""


class InvalidConfiguration(PartitioningError, ValueError):
    """Configuration values are outside their documented ranges"""


class MalformedTree(PartitioningError, ValueError):
    """Supplied nodes/edges do not form a single rooted tree"""


class RandomSourceUnavailable(PartitioningError):
    """The jitter random source could not provide a sample"""


class ChannelClosedError(PartitioningError):
    """A secure channel was used after it had been closed"""
