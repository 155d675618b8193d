from typing import Protocol, runtime_checkable

from .models import BridgeQuote, BridgeRequest, PreparedBridge
from ...types.chain import ChainId


@runtime_checkable
class BridgeProvider(Protocol):
    """A bridge venue moving one token between two chains."""

    id: str

    def supports_chain_pair(self, source_chain_id: ChainId, dest_chain_id: ChainId) -> bool:
        ...

    async def get_quote(self, request: BridgeRequest) -> BridgeQuote:
        ...

    async def build_route(self, request: BridgeRequest) -> PreparedBridge:
        ...
