from sasap.deployment.deployment_simulator import (
    CommunicationRecord,
    DeploymentReport,
    DeploymentSimulator,
    ExecutionRecord,
)
from sasap.deployment.secure_channel import AESGCMChannel, SecureChannel

__all__ = [
    'AESGCMChannel',
    'CommunicationRecord',
    'DeploymentReport',
    'DeploymentSimulator',
    'ExecutionRecord',
    'SecureChannel',
]
