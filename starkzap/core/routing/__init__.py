from .aggregator import (
    BestQuote,
    BridgeAggregator,
    QuoteOutcome,
    RouteAggregator,
    RoutedPreparation,
    SwapAggregator,
    score_route,
)

__all__ = [
    "RouteAggregator",
    "BridgeAggregator",
    "SwapAggregator",
    "QuoteOutcome",
    "BestQuote",
    "RoutedPreparation",
    "score_route",
]
