#!/usr/bin/env python3
"""
Block explorer verification
Submits contract sources to an Etherscan-compatible API and polls the result
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .artifacts import ContractFactory
from .exceptions import VerificationError

logger = logging.getLogger(__name__)

CODE_FORMAT = "solidity-standard-json-input"
PENDING_MARKER = "pending in queue"
ALREADY_VERIFIED_MARKER = "already verified"
NOT_INDEXED_MARKER = "unable to locate contractcode"


class EtherscanVerifier:
    """Callable verification service: verifier(address, constructor_arguments)"""

    def __init__(
        self,
        factory: ContractFactory,
        api_key: Optional[str],
        chain_id: int,
        api_url: str = "https://api.etherscan.io/v2/api",
        poll_interval: float = 5.0,
        max_attempts: int = 10,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.factory = factory
        self.api_key = api_key
        self.chain_id = chain_id
        self.api_url = api_url
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

    def __call__(self, address: str, constructor_arguments: List[Any]) -> bool:
        return self.verify(address, constructor_arguments)

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = self.session.request(
                method,
                self.api_url,
                params={"chainid": self.chain_id, **(params or {})},
                data=data,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise VerificationError(f"Explorer request failed: {e}")
        except ValueError as e:
            raise VerificationError(f"Explorer returned invalid JSON: {e}")

    def submit(self, address: str, constructor_arguments: List[Any]) -> str:
        """
        Submit the contract sources for verification

        Returns:
            GUID of the verification job
        """
        payload = {
            "apikey": self.api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": address,
            "sourceCode": json.dumps(self.factory.standard_json_input()),
            "codeformat": CODE_FORMAT,
            "contractname": self.factory.fully_qualified_name,
            "compilerversion": self.factory.compiler_version(),
            # Etherscan's spelling
            "constructorArguements": self.factory.encode_constructor_args(constructor_arguments),
        }

        for attempt in range(1, self.max_attempts + 1):
            data = self._request("POST", data=payload)
            result = str(data.get("result", ""))
            if data.get("status") == "1":
                logger.info(f"Verification submitted, guid {result}")
                return result
            if NOT_INDEXED_MARKER in result.lower() and attempt < self.max_attempts:
                logger.info(f"Explorer has not indexed {address} yet, retrying ({attempt}/{self.max_attempts})")
                time.sleep(self.poll_interval)
                continue
            raise VerificationError(result or data.get("message", "unknown explorer error"))

        raise VerificationError(f"Explorer never indexed {address}")

    def check_status(self, guid: str) -> bool:
        """Poll a verification job until it passes or fails"""
        params = {
            "apikey": self.api_key,
            "module": "contract",
            "action": "checkverifystatus",
            "guid": guid,
        }
        for _ in range(self.max_attempts):
            data = self._request("GET", params=params)
            result = str(data.get("result", ""))
            lowered = result.lower()
            if PENDING_MARKER in lowered:
                time.sleep(self.poll_interval)
                continue
            if data.get("status") == "1" or ALREADY_VERIFIED_MARKER in lowered:
                return True
            raise VerificationError(result)

        raise VerificationError(f"Verification {guid} still pending after {self.max_attempts} checks")

    def verify(self, address: str, constructor_arguments: List[Any]) -> bool:
        """
        Verify a deployed contract on the explorer

        Args:
            address: Deployed contract address
            constructor_arguments: Values the contract was constructed with

        Returns:
            True once the explorer reports the contract verified
        """
        if not self.api_key:
            raise VerificationError("ETHERSCAN_API_KEY is not set")

        try:
            return self._submit_and_check(address, constructor_arguments)
        finally:
            self.close()

    def _submit_and_check(self, address: str, constructor_arguments: List[Any]) -> bool:
        try:
            guid = self.submit(address, constructor_arguments)
        except VerificationError as e:
            if ALREADY_VERIFIED_MARKER in str(e).lower():
                logger.info(f"{address} is already verified")
                return True
            raise

        return self.check_status(guid)

    def close(self):
        """Release the HTTP session unless the caller supplied it"""
        if self._owns_session:
            self.session.close()
