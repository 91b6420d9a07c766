"""ContractUtility: Web3 initialization and contract ABI loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.middleware import SignAndSendRawMiddlewareBuilder

from .errors import ConfigurationError

if TYPE_CHECKING:
    from web3.contract import Contract


class ContractUtility:
    """Utility for Web3 connection and contract ABI loading.

    :ivar rpc_url: Network RPC URL.
    :ivar account: Local signing account.
    :ivar w3: Configured Web3 instance that signs outgoing transactions.
    """

    def __init__(self, rpc_url: str, private_key: str) -> None:
        """Initialize the contract utility.

        :param rpc_url: JSON-RPC endpoint of the network.
        :param private_key: Hex private key of the oracle owner account.
        :raises ConfigurationError: If the private key is malformed.
        """
        self.rpc_url = rpc_url

        try:
            self.account: LocalAccount = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid PRIVATE_KEY: {e}") from e

        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url))
        # Transactions sent from default_account are signed locally
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
        self.w3.eth.default_account = self.account.address

    def get_contract(self, address: str, contract_name: str = "GoldOracle") -> Contract:
        """Bind a deployed contract at the given address.

        :param address: Contract address (any case).
        :param contract_name: Name of the bundled ABI file.
        :returns: web3 Contract instance.
        :raises ConfigurationError: If the address is not a valid address.
        """
        if not Web3.is_address(address):
            raise ConfigurationError(f"Invalid contract address: {address}")
        abi = self.load_abi(contract_name)
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    @staticmethod
    def load_abi(contract_name: str) -> list:
        """Load the ABI of a contract from the bundled abi folder.

        :param contract_name: Name of the contract (e.g., "GoldOracle").
        :returns: Contract ABI.
        """
        abi_path = (Path(__file__).parent / "abi" / f"{contract_name}.json").resolve()

        with open(abi_path, "r") as file:
            contract_data = json.load(file)

        return contract_data["abi"]
