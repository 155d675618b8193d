from .layerswap import LayerswapBridgeProvider
from .orbiter import OrbiterBridgeProvider
from .starkgate import StarkgateBridgeProvider

__all__ = ["StarkgateBridgeProvider", "OrbiterBridgeProvider", "LayerswapBridgeProvider"]
