#!/usr/bin/env python3
"""
Tests for the chain provider
Web3 is replaced by mocks; no node is needed
"""

import asyncio
import itertools
from unittest.mock import AsyncMock, MagicMock

import pytest

from .conftest import TX_HASH, Awaitable
from .exceptions import DeploymentError
from .provider import ChainProvider

SENDER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PRIVATE_KEY = "0x" + "11" * 32


class FakeEth:
    """Minimal stand-in for AsyncWeb3().eth"""

    def __init__(self, blocks=(), receipt=None, chain_id=11155111, accounts=(SENDER,)):
        self._blocks = iter(blocks)
        self.block_reads = 0
        self._chain_id = chain_id
        self._accounts = list(accounts)
        self.wait_for_transaction_receipt = AsyncMock(return_value=receipt)
        self.get_block = AsyncMock(return_value={"number": 1, "baseFeePerGas": 100})
        self.get_transaction_count = AsyncMock(return_value=7)
        self.send_raw_transaction = AsyncMock(return_value=TX_HASH)
        self.contract = MagicMock()

    @property
    def block_number(self):
        self.block_reads += 1
        return Awaitable(next(self._blocks))

    @property
    def chain_id(self):
        return Awaitable(self._chain_id)

    @property
    def accounts(self):
        return Awaitable(self._accounts)

    @property
    def max_priority_fee(self):
        return Awaitable(2)

    @property
    def gas_price(self):
        return Awaitable(50)


def make_provider(eth, connected=True, **kwargs):
    w3 = MagicMock()
    w3.eth = eth
    w3.is_connected = AsyncMock(return_value=connected)
    return ChainProvider("http://node.invalid", poll_interval=0, w3=w3, **kwargs)


class TestConnect:
    """Test class for ChainProvider.connect"""

    def test_connect_returns_chain_id(self):
        """Test connecting records the node's chain id"""
        provider = make_provider(FakeEth(chain_id=11155111))

        assert asyncio.run(provider.connect()) == 11155111
        assert provider.chain_id == 11155111

    def test_connect_unreachable(self):
        """Test an unreachable node raises DeploymentError"""
        provider = make_provider(FakeEth(), connected=False)

        with pytest.raises(DeploymentError, match="Could not connect"):
            asyncio.run(provider.connect())

    def test_connect_chain_id_mismatch(self):
        """Test a CHAIN_ID that disagrees with the node is rejected"""
        provider = make_provider(FakeEth(chain_id=1), chain_id=11155111)

        with pytest.raises(DeploymentError, match="reports 1"):
            asyncio.run(provider.connect())


class TestDeploy:
    """Test class for ChainProvider.deploy"""

    def test_deploy_with_unlocked_account(self, safesend_factory):
        """Test the node's first account sends the transaction when no key is set"""
        eth = FakeEth()
        constructor = eth.contract.return_value.constructor.return_value
        constructor.transact = AsyncMock(return_value=TX_HASH)
        provider = make_provider(eth)

        tx_hash = asyncio.run(provider.deploy(safesend_factory))

        assert tx_hash == TX_HASH
        eth.contract.assert_called_once_with(abi=safesend_factory.abi, bytecode=safesend_factory.bytecode)
        constructor.transact.assert_awaited_once_with({"from": SENDER})

    def test_deploy_without_any_account(self, safesend_factory):
        """Test a node without unlocked accounts and no key cannot deploy"""
        provider = make_provider(FakeEth(accounts=()))

        with pytest.raises(DeploymentError, match="no unlocked accounts"):
            asyncio.run(provider.deploy(safesend_factory))

    def test_deploy_signs_locally_with_eip1559_fees(self, safesend_factory):
        """Test a private key signs an EIP-1559 creation transaction"""
        eth = FakeEth(chain_id=11155111)
        constructor = eth.contract.return_value.constructor.return_value
        constructor.build_transaction = AsyncMock(return_value={"data": safesend_factory.bytecode})
        provider = make_provider(eth, private_key=PRIVATE_KEY)
        provider.account = MagicMock(address=SENDER)
        provider.account.sign_transaction.return_value = MagicMock(raw_transaction=b"signed")

        tx_hash = asyncio.run(provider.deploy(safesend_factory))

        assert tx_hash == TX_HASH
        constructor.build_transaction.assert_awaited_once_with({
            "from": SENDER,
            "nonce": 7,
            "chainId": 11155111,
            "maxPriorityFeePerGas": 2,
            "maxFeePerGas": 202,
        })
        eth.send_raw_transaction.assert_awaited_once_with(b"signed")

    def test_deploy_legacy_gas_price(self, safesend_factory):
        """Test chains without a base fee fall back to gasPrice"""
        eth = FakeEth()
        eth.get_block.return_value = {"number": 1}
        constructor = eth.contract.return_value.constructor.return_value
        constructor.build_transaction = AsyncMock(return_value={})
        provider = make_provider(eth, private_key=PRIVATE_KEY)
        provider.account = MagicMock(address=SENDER)

        asyncio.run(provider.deploy(safesend_factory))

        tx_params = constructor.build_transaction.await_args.args[0]
        assert tx_params["gasPrice"] == 50
        assert "maxFeePerGas" not in tx_params


class TestWaitForConfirmations:
    """Test class for ChainProvider.wait_for_confirmations"""

    def test_waits_until_enough_blocks(self):
        """Test five confirmations for a tx in block 10 need block 14"""
        receipt = {"blockNumber": 10, "status": 1}
        eth = FakeEth(blocks=[10, 12, 13, 14], receipt=receipt)
        provider = make_provider(eth)

        result = asyncio.run(provider.wait_for_confirmations(TX_HASH, 5, timeout=5))

        assert result == receipt
        assert eth.block_reads == 4

    def test_single_confirmation_is_the_mining_block(self):
        """Test one confirmation is satisfied by the receipt's own block"""
        eth = FakeEth(blocks=[10], receipt={"blockNumber": 10, "status": 1})
        provider = make_provider(eth)

        asyncio.run(provider.wait_for_confirmations(TX_HASH, 1, timeout=5))

        assert eth.block_reads == 1

    def test_times_out(self):
        """Test a stalled chain raises asyncio.TimeoutError"""
        eth = FakeEth(blocks=itertools.repeat(10), receipt={"blockNumber": 10, "status": 1})
        provider = make_provider(eth)
        provider.poll_interval = 0.01

        with pytest.raises(asyncio.TimeoutError):
            asyncio.run(provider.wait_for_confirmations(TX_HASH, 5, timeout=0.1))
