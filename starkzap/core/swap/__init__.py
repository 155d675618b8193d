from .interface import SwapProvider
from .models import PreparedSwap, SwapInput, SwapQuote, SwapRequest
from .providers import AvnuSwapProvider, EkuboSwapProvider
from .utils import assert_swap_context, hydrate_swap_request, resolve_swap_source

__all__ = [
    "SwapProvider",
    "SwapRequest",
    "SwapInput",
    "SwapQuote",
    "PreparedSwap",
    "AvnuSwapProvider",
    "EkuboSwapProvider",
    "resolve_swap_source",
    "hydrate_swap_request",
    "assert_swap_context",
]
