"""
Web3 Service module.

Manages one Web3 connection per chain, built from the RPC URL configured
for that chain.
"""

from typing import Dict

from web3 import Web3

from channel_toolkit.shared.constants import GlobalConstants
from channel_toolkit.shared.exceptions import ConfigurationException


class Web3Service:
    """A service class for managing Web3 connections."""

    _instances: Dict[int, "Web3Service"] = {}

    def __init__(self, chain_id: int, rpc_url: str):
        """
        Initialize the Web3Service.

        Args:
            chain_id (int): The chain ID to use.
            rpc_url (str): The RPC URL to use.
        """
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self.w3 = Web3(Web3.HTTPProvider(rpc_url))

    @classmethod
    def get_instance(cls, chain_id: int) -> "Web3Service":
        """Get or create a Web3Service instance for a specific chain"""
        if chain_id not in cls._instances:
            rpc_url = GlobalConstants.get_rpc_url(chain_id)
            if not rpc_url:
                raise ConfigurationException(
                    f"RPC URL environment variable for {chain_id} is not set "
                    f"(RPC_URL_{chain_id} or RPC_URL)"
                )
            cls._instances[chain_id] = cls(chain_id, rpc_url)

        return cls._instances[chain_id]

    @classmethod
    def clear_instances(cls) -> None:
        cls._instances = {}
