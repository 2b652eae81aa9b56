#!/usr/bin/env python3
"""
Hardhat build artifacts
Turns compiled contract JSON into a deployable contract factory
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from eth_abi import encode

from .exceptions import ArtifactError

logger = logging.getLogger(__name__)

HEX_PREFIX = "0x"


@dataclass
class ContractFactory:
    """Compiled contract ready to be deployed"""
    name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    source_name: Optional[str] = None
    build_info_path: Optional[Path] = None
    _build_info: Optional[Dict[str, Any]] = field(default=None, repr=False)

    @property
    def fully_qualified_name(self) -> str:
        """Name in the `path/File.sol:Contract` form block explorers expect"""
        if self.source_name:
            return f"{self.source_name}:{self.name}"
        return self.name

    def constructor_inputs(self) -> List[Dict[str, Any]]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return entry.get("inputs", [])
        return []

    def encode_constructor_args(self, args: List[Any]) -> str:
        """
        ABI-encode constructor arguments as a hex string without prefix

        Args:
            args: Constructor argument values, in ABI order

        Returns:
            Encoded arguments ('' for a constructor without arguments)
        """
        inputs = self.constructor_inputs()
        if len(args) != len(inputs):
            raise ArtifactError(
                f"{self.name} constructor takes {len(inputs)} arguments, got {len(args)}"
            )
        if not inputs:
            return ""
        types = [item["type"] for item in inputs]
        return encode(types, list(args)).hex()

    def build_info(self) -> Dict[str, Any]:
        """Load the Hardhat build-info file this artifact was compiled in"""
        if self._build_info is None:
            if self.build_info_path is None or not self.build_info_path.exists():
                raise ArtifactError(f"No build-info found for {self.name}; run `npx hardhat compile`")
            with open(self.build_info_path, "r") as f:
                self._build_info = json.load(f)
        return self._build_info

    def compiler_version(self) -> str:
        """Full solc version with the `v` prefix, e.g. v0.8.20+commit.a1b79de6"""
        version = self.build_info().get("solcLongVersion")
        if not version:
            raise ArtifactError(f"Build-info for {self.name} has no solcLongVersion")
        return version if version.startswith("v") else f"v{version}"

    def standard_json_input(self) -> Dict[str, Any]:
        """solc standard-json input used to compile this contract"""
        compiler_input = self.build_info().get("input")
        if not compiler_input:
            raise ArtifactError(f"Build-info for {self.name} has no compiler input")
        return compiler_input


def find_artifact(artifacts_dir: Path, contract_name: str) -> Path:
    """Locate `<contract_name>.json` under the Hardhat artifacts tree"""
    artifacts_dir = Path(artifacts_dir)
    if not artifacts_dir.exists():
        raise ArtifactError(
            f"Artifacts directory {artifacts_dir} not found. Compile the contracts with: npx hardhat compile"
        )

    candidates = [
        path for path in artifacts_dir.rglob(f"{contract_name}.json")
        if "build-info" not in path.parts
    ]
    if not candidates:
        raise ArtifactError(f"Artifact for {contract_name} not found under {artifacts_dir}")
    if len(candidates) > 1:
        names = ", ".join(str(path) for path in sorted(candidates))
        raise ArtifactError(f"Multiple artifacts named {contract_name}: {names}")
    return candidates[0]


def _resolve_build_info(artifact_path: Path) -> Optional[Path]:
    dbg_path = artifact_path.with_name(artifact_path.stem + ".dbg.json")
    if not dbg_path.exists():
        return None
    with open(dbg_path, "r") as f:
        dbg = json.load(f)
    build_info = dbg.get("buildInfo")
    if not build_info:
        return None
    return (dbg_path.parent / build_info).resolve()


def load_contract_factory(artifacts_dir: Path, contract_name: str) -> ContractFactory:
    """
    Build a contract factory from Hardhat artifacts

    Args:
        artifacts_dir: Hardhat `artifacts/` directory
        contract_name: Contract to load, e.g. SafeSend

    Returns:
        ContractFactory with ABI, creation bytecode and build-info location
    """
    artifact_path = find_artifact(artifacts_dir, contract_name)
    logger.debug(f"Loading artifact {artifact_path}")

    try:
        with open(artifact_path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ArtifactError(f"Artifact {artifact_path} is not valid JSON: {e}")

    abi = data.get("abi")
    bytecode = data.get("bytecode")
    if abi is None or not bytecode or bytecode == HEX_PREFIX:
        raise ArtifactError(f"Artifact {artifact_path} is missing abi/bytecode (abstract contract or interface?)")
    if not bytecode.startswith(HEX_PREFIX):
        bytecode = HEX_PREFIX + bytecode

    return ContractFactory(
        name=data.get("contractName", contract_name),
        abi=abi,
        bytecode=bytecode,
        source_name=data.get("sourceName"),
        build_info_path=_resolve_build_info(artifact_path),
    )
