#!/usr/bin/env python3
"""
SafeSend Deployer
Deploys the contract, waits for confirmations and verifies it on the explorer
"""

import asyncio
import inspect
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from web3 import Web3
from web3.exceptions import TimeExhausted

from .artifacts import ContractFactory, load_contract_factory
from .config import DeploymentConfig
from .exceptions import (
    ConfirmationTimeoutError,
    DeploymentError,
    SafeSendDeploymentError,
)
from .provider import ChainProvider
from .verifier import EtherscanVerifier

logger = logging.getLogger(__name__)

FactoryLoader = Callable[[Path, str], ContractFactory]
VerificationService = Callable[..., Any]


@dataclass
class DeploymentResult:
    """Outcome of a single deployment run"""
    contract_address: str
    transaction_hash: Any
    confirmed: bool = False
    network: Optional[str] = None
    chain_id: Optional[int] = None
    block_number: Optional[int] = None
    verified: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["transaction_hash"] = Web3.to_hex(self.transaction_hash)
        return data


class Deployer:
    """Sequential deploy -> confirm -> verify workflow"""

    def __init__(
        self,
        config: DeploymentConfig,
        provider: Optional[ChainProvider] = None,
        factory_loader: FactoryLoader = load_contract_factory,
        verifier: Optional[VerificationService] = None,
        constructor_arguments: Optional[List[Any]] = None,
    ):
        self.config = config
        self.provider = provider or ChainProvider(
            config.rpc_url,
            private_key=config.private_key,
            chain_id=config.chain_id,
            poll_interval=config.poll_interval,
        )
        self.factory_loader = factory_loader
        self.verifier = verifier
        self.constructor_arguments = constructor_arguments or []

        self.factory: Optional[ContractFactory] = None
        self.transaction_hash: Any = None
        self.contract_address: Optional[str] = None

    async def deploy(self) -> str:
        """
        Build the contract factory and submit the deployment transaction

        Returns:
            Checksummed address of the deployed contract

        Raises:
            DeploymentError: the factory could not be built or the transaction was rejected
        """
        name = self.config.contract_name
        logger.info(f"Deploying {name} contract...")

        try:
            self.factory = await asyncio.to_thread(
                self.factory_loader, self.config.artifacts_dir, name
            )
        except DeploymentError:
            raise
        except Exception as e:
            raise DeploymentError(f"Could not build contract factory for {name}: {e}") from e

        try:
            self.transaction_hash = await self.provider.deploy(self.factory, self.constructor_arguments)
            logger.info(f"Deployment transaction sent: {Web3.to_hex(self.transaction_hash)}")
            receipt = await self.provider.wait_for_receipt(
                self.transaction_hash, timeout=self.config.confirmation_timeout
            )
        except DeploymentError:
            raise
        except Exception as e:
            raise DeploymentError(f"Deployment of {name} failed: {e}") from e

        if receipt.get("status") != 1:
            raise DeploymentError(
                f"Deployment transaction {Web3.to_hex(self.transaction_hash)} reverted"
            )

        address = receipt.get("contractAddress")
        if not address:
            raise DeploymentError("Deployment receipt has no contract address")

        self.contract_address = Web3.to_checksum_address(address)
        logger.info(f"{name} deployed to: {self.contract_address}")
        return self.contract_address

    async def await_confirmations(self, tx: Any, n: int):
        """
        Wait until `n` confirmations are observed for `tx`

        Returns:
            Receipt of the confirmed transaction

        Raises:
            ConfirmationTimeoutError: the provider failed or the timeout elapsed
        """
        timeout = self.config.confirmation_timeout
        try:
            return await self.provider.wait_for_confirmations(tx, n, timeout=timeout)
        except (asyncio.TimeoutError, TimeExhausted) as e:
            raise ConfirmationTimeoutError(
                f"{Web3.to_hex(tx)} did not reach {n} confirmations within {timeout}s"
            ) from e
        except Exception as e:
            raise ConfirmationTimeoutError(f"Provider failed while waiting for confirmations: {e}") from e

    def _default_verifier(self) -> EtherscanVerifier:
        if self.factory is None:
            raise DeploymentError("Nothing has been deployed yet")
        return EtherscanVerifier(
            self.factory,
            api_key=self.config.etherscan_api_key,
            chain_id=self.provider.chain_id,
            api_url=self.config.etherscan_api_url,
        )

    async def verify(self, address: str) -> bool:
        """Verify `address` on the block explorer. Failures are logged, never raised."""
        logger.info("Verifying contract...")
        try:
            verifier = self.verifier or self._default_verifier()
            outcome = await asyncio.to_thread(
                verifier, address=address, constructor_arguments=list(self.constructor_arguments)
            )
            # async verification services hand back a coroutine
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"Verification failed: {e}")
            return False

        logger.info("Contract verified successfully!")
        return True

    def should_verify(self) -> bool:
        if not self.config.verify:
            logger.info("Verification disabled, skipping")
            return False
        if self.config.is_local(self.provider.chain_id):
            logger.info(
                f"Network {self.config.network_name(self.provider.chain_id)} is local, skipping verification"
            )
            return False
        return True

    def save(self, result: DeploymentResult) -> Optional[Path]:
        """Write the deployment record to <deployments_dir>/<network>.json"""
        record = result.to_dict()
        record["contract_name"] = self.config.contract_name
        if self.factory is not None:
            record["abi"] = self.factory.abi

        network = result.network or self.config.network_name(self.provider.chain_id)
        path = Path(self.config.deployments_dir) / f"{network}.json"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(record, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write deployment record {path}: {e}")
            return None

        logger.info(f"Deployment record saved to {path}")
        return path

    async def run(self) -> DeploymentResult:
        """Deploy, wait for the configured confirmations, then verify (best effort)"""
        try:
            chain_id = await self.provider.connect()
        except SafeSendDeploymentError:
            raise
        except Exception as e:
            raise DeploymentError(f"Could not connect to {self.config.rpc_url}: {e}") from e

        address = await self.deploy()
        result = DeploymentResult(
            contract_address=address,
            transaction_hash=self.transaction_hash,
            network=self.config.network_name(chain_id),
            chain_id=chain_id,
        )

        logger.info("Waiting for block confirmations...")
        receipt = await self.await_confirmations(self.transaction_hash, self.config.confirmations)
        result.confirmed = True
        result.block_number = receipt["blockNumber"]
        logger.info("Deployment confirmed!")

        if self.should_verify():
            result.verified = await self.verify(address)

        self.save(result)
        return result
