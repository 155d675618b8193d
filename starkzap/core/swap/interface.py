from typing import Protocol, runtime_checkable

from .models import PreparedSwap, SwapQuote, SwapRequest
from ...types.chain import ChainId


@runtime_checkable
class SwapProvider(Protocol):
    """A swap venue.

    ``get_quote`` and ``build_route`` raise a single ``RouteProviderError``
    on any failure and never return partial results.
    """

    id: str

    def supports_chain(self, chain_id: ChainId) -> bool:
        ...

    async def get_quote(self, request: SwapRequest) -> SwapQuote:
        ...

    async def build_route(self, request: SwapRequest) -> PreparedSwap:
        ...
