"""
SafeSend deployment
===================

Deploys the SafeSend contract from Hardhat artifacts, waits for block
confirmations and publishes its sources to an Etherscan-compatible explorer.
"""

from .artifacts import ContractFactory, load_contract_factory
from .config import DeploymentConfig
from .deployer import Deployer, DeploymentResult
from .exceptions import (
    ArtifactError,
    ConfigurationError,
    ConfirmationTimeoutError,
    DeploymentError,
    SafeSendDeploymentError,
    VerificationError,
)
from .provider import ChainProvider
from .verifier import EtherscanVerifier

__all__ = [
    'ArtifactError',
    'ChainProvider',
    'ConfigurationError',
    'ConfirmationTimeoutError',
    'ContractFactory',
    'Deployer',
    'DeploymentConfig',
    'DeploymentError',
    'DeploymentResult',
    'EtherscanVerifier',
    'SafeSendDeploymentError',
    'VerificationError',
    'load_contract_factory',
]
