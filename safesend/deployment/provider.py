#!/usr/bin/env python3
"""
Chain provider
Thin asyncio wrapper around web3.py for deploying and confirming transactions
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

from eth_account import Account
from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3

from .artifacts import ContractFactory
from .exceptions import DeploymentError

logger = logging.getLogger(__name__)


class ChainProvider:
    """Sends deployment transactions and tracks their confirmations"""

    def __init__(
        self,
        rpc_url: str,
        private_key: Optional[str] = None,
        chain_id: Optional[int] = None,
        poll_interval: float = 2.0,
        w3: Optional[AsyncWeb3] = None,
    ):
        self.rpc_url = rpc_url
        self.w3 = w3 if w3 is not None else AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.account = Account.from_key(private_key) if private_key else None
        self.chain_id = chain_id
        self.poll_interval = poll_interval

    async def connect(self) -> int:
        """Check the node is reachable and return its chain id"""
        if not await self.w3.is_connected():
            raise DeploymentError(f"Could not connect to RPC URL: {self.rpc_url}")
        node_chain_id = await self.w3.eth.chain_id
        if self.chain_id is not None and self.chain_id != node_chain_id:
            raise DeploymentError(
                f"CHAIN_ID is {self.chain_id} but the node at {self.rpc_url} reports {node_chain_id}"
            )
        self.chain_id = node_chain_id
        logger.info(f"Connected to chain {node_chain_id} at {self.rpc_url}")
        return node_chain_id

    async def sender_address(self) -> str:
        if self.account is not None:
            return self.account.address
        accounts = await self.w3.eth.accounts
        if not accounts:
            raise DeploymentError("PRIVATE_KEY is not set and the node exposes no unlocked accounts")
        return accounts[0]

    async def _fee_params(self) -> Dict[str, int]:
        latest = await self.w3.eth.get_block("latest")
        base_fee = latest.get("baseFeePerGas")
        if base_fee is not None:
            priority_fee = await self.w3.eth.max_priority_fee
            return {
                "maxPriorityFeePerGas": priority_fee,
                "maxFeePerGas": 2 * int(base_fee) + priority_fee,
            }
        return {"gasPrice": await self.w3.eth.gas_price}

    async def deploy(self, factory: ContractFactory, constructor_args: Sequence[Any] = ()) -> HexBytes:
        """
        Submit a contract creation transaction

        Args:
            factory: Compiled contract to deploy
            constructor_args: Constructor argument values

        Returns:
            Hash of the submitted transaction
        """
        contract = self.w3.eth.contract(abi=factory.abi, bytecode=factory.bytecode)
        constructor = contract.constructor(*constructor_args)
        sender = await self.sender_address()

        if self.account is None:
            # Unlocked node account, the node signs
            return await constructor.transact({"from": sender})

        if self.chain_id is None:
            self.chain_id = await self.w3.eth.chain_id

        tx = await constructor.build_transaction({
            "from": sender,
            "nonce": await self.w3.eth.get_transaction_count(sender),
            "chainId": self.chain_id,
            **await self._fee_params(),
        })
        signed = self.account.sign_transaction(tx)
        return await self.w3.eth.send_raw_transaction(signed.raw_transaction)

    async def wait_for_receipt(self, tx_hash: HexBytes, timeout: float = 120):
        return await self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=timeout, poll_latency=self.poll_interval
        )

    async def wait_for_confirmations(self, tx_hash: HexBytes, confirmations: int, timeout: float = 600):
        """
        Wait until `confirmations` blocks include or follow the transaction's block

        Raises asyncio.TimeoutError once `timeout` seconds have passed.
        """
        async def _poll():
            receipt = await self.wait_for_receipt(tx_hash, timeout=timeout)
            target_block = receipt["blockNumber"] + confirmations - 1
            while True:
                latest = await self.w3.eth.block_number
                if latest >= target_block:
                    return receipt
                logger.debug(
                    f"{latest - receipt['blockNumber'] + 1}/{confirmations} confirmations for {Web3.to_hex(tx_hash)}"
                )
                await asyncio.sleep(self.poll_interval)

        return await asyncio.wait_for(_poll(), timeout)
