from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class Provider(ABC):
    """A remote JSON-RPC endpoint the SDK talks to."""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """True when the endpoint is configured and can take requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """``{"status": "ok" | "error", ...}`` without raising"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP client"""
        pass


class ChainReader(Provider):
    """Read-only view of a Starknet node"""

    @abstractmethod
    async def get_chain_id(self) -> str:
        """Return the chain id as a 0x-prefixed felt string"""
        pass

    @abstractmethod
    async def get_class_hash_at(self, address: str, block_id: str = "latest") -> str:
        """Class hash deployed at ``address``; raises ContractNotFoundError when empty"""
        pass

    @abstractmethod
    async def call_contract(
        self,
        contract_address: str,
        entrypoint: str,
        calldata: Optional[List[int]] = None,
        block_id: str = "latest",
    ) -> List[int]:
        """Execute a view call and return the felts it produced"""
        pass

    @abstractmethod
    async def get_transaction_receipt(self, tx_hash: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def get_transaction_status(self, tx_hash: str) -> Dict[str, Any]:
        pass
