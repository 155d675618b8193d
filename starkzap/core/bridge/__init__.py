from .interface import BridgeProvider
from .models import BridgeInput, BridgeQuote, BridgeRequest, PreparedBridge
from .providers import LayerswapBridgeProvider, OrbiterBridgeProvider, StarkgateBridgeProvider
from .utils import assert_bridge_context, hydrate_bridge_request, resolve_bridge_input, resolve_bridge_source

__all__ = [
    "BridgeProvider",
    "BridgeRequest",
    "BridgeInput",
    "BridgeQuote",
    "PreparedBridge",
    "StarkgateBridgeProvider",
    "OrbiterBridgeProvider",
    "LayerswapBridgeProvider",
    "resolve_bridge_source",
    "hydrate_bridge_request",
    "assert_bridge_context",
    "resolve_bridge_input",
]
