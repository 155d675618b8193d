from .avnu import AvnuSwapProvider
from .ekubo import EkuboSwapProvider

__all__ = ["AvnuSwapProvider", "EkuboSwapProvider"]
