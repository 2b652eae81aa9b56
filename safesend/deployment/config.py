#!/usr/bin/env python3
"""
Deployment configuration
Settings are read from the environment (and a local .env file)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_NETWORK = "localhost"
DEFAULT_CONTRACT_NAME = "SafeSend"
DEFAULT_CONFIRMATIONS = 5
DEFAULT_CONFIRMATION_TIMEOUT = 600
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"

LOCAL_NETWORKS = ["localhost", "hardhat", "local", "development"]
LOCAL_CHAIN_IDS = [31337, 1337]


def _env(name: str, network: Optional[str] = None, default: Optional[str] = None) -> Optional[str]:
    """Look up NAME, preferring the <NETWORK>_NAME override when a network is given"""
    if network:
        value = os.getenv(f"{network.upper()}_{name}")
        if value:
            return value
    value = os.getenv(name)
    return value if value else default


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


@dataclass
class DeploymentConfig:
    """Everything a deployment run needs to know about its target"""
    rpc_url: str = DEFAULT_RPC_URL
    network: Optional[str] = None
    private_key: Optional[str] = None
    chain_id: Optional[int] = None
    contract_name: str = DEFAULT_CONTRACT_NAME
    artifacts_dir: Path = Path("artifacts")
    confirmations: int = DEFAULT_CONFIRMATIONS
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    etherscan_api_key: Optional[str] = None
    etherscan_api_url: str = DEFAULT_ETHERSCAN_API_URL
    deployments_dir: Path = Path("deployments")
    verify: bool = True

    def __post_init__(self):
        if self.confirmations < 1:
            raise ConfigurationError(f"confirmations must be at least 1, got {self.confirmations}")
        if self.confirmation_timeout <= 0:
            raise ConfigurationError("confirmation timeout must be positive")

    @classmethod
    def from_env(cls, network: Optional[str] = None, dotenv_path: Optional[str] = None) -> "DeploymentConfig":
        """
        Build a configuration from environment variables

        Args:
            network: Network name; enables <NETWORK>_RPC_URL / <NETWORK>_PRIVATE_KEY overrides
            dotenv_path: Explicit .env file, otherwise the nearest .env at or above the working directory

        Returns:
            DeploymentConfig populated from the environment
        """
        load_dotenv(dotenv_path=dotenv_path or find_dotenv(usecwd=True))

        network = network or os.getenv("NETWORK") or None

        return cls(
            rpc_url=_env("RPC_URL", network, DEFAULT_RPC_URL),
            network=network,
            private_key=_env("PRIVATE_KEY", network),
            chain_id=_int_env("CHAIN_ID", None),
            contract_name=os.getenv("CONTRACT_NAME") or DEFAULT_CONTRACT_NAME,
            artifacts_dir=Path(os.getenv("ARTIFACTS_DIR") or "artifacts"),
            confirmations=_int_env("DEPLOY_CONFIRMATIONS", DEFAULT_CONFIRMATIONS),
            confirmation_timeout=_float_env("CONFIRMATION_TIMEOUT", DEFAULT_CONFIRMATION_TIMEOUT),
            poll_interval=_float_env("POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            etherscan_api_key=os.getenv("ETHERSCAN_API_KEY") or None,
            etherscan_api_url=os.getenv("ETHERSCAN_API_URL") or DEFAULT_ETHERSCAN_API_URL,
            deployments_dir=Path(os.getenv("DEPLOYMENTS_DIR") or "deployments"),
        )

    def network_name(self, chain_id: Optional[int] = None) -> str:
        """Network name for logs and deployment records, derived from the chain when unset"""
        if self.network:
            return self.network
        chain_id = chain_id if chain_id is not None else self.chain_id
        if chain_id is None or chain_id in LOCAL_CHAIN_IDS:
            return DEFAULT_NETWORK
        return f"chain-{chain_id}"

    def is_local(self, chain_id: Optional[int] = None) -> bool:
        """True for development chains that have no block explorer"""
        if self.network and self.network.lower() in LOCAL_NETWORKS:
            return True
        chain_id = chain_id if chain_id is not None else self.chain_id
        return chain_id in LOCAL_CHAIN_IDS
