"""Shared fixtures for the deployment tests"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes

from .artifacts import ContractFactory

SAFESEND_ABI = [
    {"inputs": [], "stateMutability": "nonpayable", "type": "constructor"},
    {
        "inputs": [{"internalType": "address", "name": "to", "type": "address"}],
        "name": "send",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
]
SAFESEND_BYTECODE = "0x6080604052348015600f57600080fd5b50603f80601d6000396000f3fe"
SOLC_LONG_VERSION = "0.8.20+commit.a1b79de6"
DEPLOYED_ADDRESS = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
TX_HASH = HexBytes("0x" + "12" * 32)


class Awaitable:
    """Value that can be awaited any number of times, like web3's async properties"""

    def __init__(self, value):
        self.value = value

    async def _get(self):
        return self.value

    def __await__(self):
        return self._get().__await__()


def write_hardhat_artifacts(root, name="SafeSend", abi=None, bytecode=SAFESEND_BYTECODE, build_info=True):
    """Lay out artifacts/ the way `npx hardhat compile` does"""
    artifacts = root / "artifacts"
    contract_dir = artifacts / "contracts" / f"{name}.sol"
    contract_dir.mkdir(parents=True, exist_ok=True)

    artifact = {
        "_format": "hh-sol-artifact-1",
        "contractName": name,
        "sourceName": f"contracts/{name}.sol",
        "abi": SAFESEND_ABI if abi is None else abi,
        "bytecode": bytecode,
        "deployedBytecode": "0x",
    }
    (contract_dir / f"{name}.json").write_text(json.dumps(artifact))

    if build_info:
        build_info_dir = artifacts / "build-info"
        build_info_dir.mkdir(exist_ok=True)
        (build_info_dir / "f00d.json").write_text(json.dumps({
            "solcLongVersion": SOLC_LONG_VERSION,
            "input": {
                "language": "Solidity",
                "sources": {f"contracts/{name}.sol": {"content": "contract SafeSend {}"}},
                "settings": {"optimizer": {"enabled": True, "runs": 200}},
            },
        }))
        (contract_dir / f"{name}.dbg.json").write_text(json.dumps({
            "_format": "hh-sol-dbg-1",
            "buildInfo": "../../build-info/f00d.json",
        }))
    return artifacts


@pytest.fixture
def hardhat_artifacts(tmp_path):
    return write_hardhat_artifacts(tmp_path)


@pytest.fixture
def safesend_factory():
    return ContractFactory(
        name="SafeSend",
        abi=SAFESEND_ABI,
        bytecode=SAFESEND_BYTECODE,
        source_name="contracts/SafeSend.sol",
        _build_info={
            "solcLongVersion": SOLC_LONG_VERSION,
            "input": {"language": "Solidity", "sources": {}},
        },
    )


@pytest.fixture
def mock_provider():
    """Chain provider whose every network call succeeds"""
    provider = MagicMock()
    provider.chain_id = 11155111
    provider.connect = AsyncMock(return_value=11155111)
    provider.deploy = AsyncMock(return_value=TX_HASH)
    provider.wait_for_receipt = AsyncMock(return_value={
        "status": 1,
        "contractAddress": DEPLOYED_ADDRESS,
        "blockNumber": 100,
    })
    provider.wait_for_confirmations = AsyncMock(return_value={
        "status": 1,
        "contractAddress": DEPLOYED_ADDRESS,
        "blockNumber": 100,
    })
    return provider


@pytest.fixture
def factory_loader(safesend_factory):
    return MagicMock(return_value=safesend_factory)
