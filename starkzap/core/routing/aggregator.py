"""
Route aggregation over independent swap and bridge venues.

An aggregator is an explicit registry owned by the caller. Quotes are
fetched from every registered venue concurrently; one venue failing is
recorded next to the others instead of aborting the round.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..bridge.interface import BridgeProvider
from ..bridge.models import BridgeQuote, BridgeRequest, PreparedBridge
from ..errors import ValidationError
from ..swap.interface import SwapProvider
from ..swap.models import PreparedSwap, SwapQuote, SwapRequest
from ...config import settings


logger = logging.getLogger(__name__)

P = TypeVar("P")
Q = TypeVar("Q")
R = TypeVar("R")
T = TypeVar("T")

FEE_WEIGHT = 0.7
TIME_WEIGHT = 0.3


@dataclass
class QuoteOutcome(Generic[Q]):
    provider_id: str
    quote: Optional[Q] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.quote is not None


@dataclass
class BestQuote(Generic[Q]):
    quote: Q
    provider_id: str
    score: float
    all_quotes: List[QuoteOutcome[Q]] = field(default_factory=list)


@dataclass
class RoutedPreparation(Generic[T]):
    prepared: T
    provider_id: str


def score_route(
    fee_base: int,
    estimated_time_seconds: Optional[int],
    prioritize_fees: bool = True,
    fee_ceiling: Optional[int] = None,
    time_ceiling: Optional[int] = None,
) -> float:
    """Weighted 0-1000 score, lower is better. Unknown time scores as the ceiling."""
    fee_ceiling = fee_ceiling or settings.route_fee_ceiling_base
    time_ceiling = time_ceiling or settings.route_time_ceiling_seconds
    fee_score = fee_base * 1000 / fee_ceiling
    time_score = (time_ceiling if estimated_time_seconds is None else estimated_time_seconds) * 1000 / time_ceiling
    if prioritize_fees:
        return fee_score * FEE_WEIGHT + time_score * TIME_WEIGHT
    return fee_score * TIME_WEIGHT + time_score * FEE_WEIGHT


class RouteAggregator(ABC, Generic[P, Q, R]):
    """Registry plus best-quote selection, shared by swap and bridge routing."""

    kind = "route"

    def __init__(
        self,
        providers: Iterable[P] = (),
        *,
        fee_ceiling: Optional[int] = None,
        time_ceiling: Optional[int] = None,
    ) -> None:
        self._providers: Dict[str, P] = {}
        self._defaults: List[str] = []
        self.fee_ceiling = fee_ceiling
        self.time_ceiling = time_ceiling
        for provider in providers:
            self.register_provider(provider)

    # ---------------------------
    # Registration
    # ---------------------------
    def register_provider(self, provider: P, make_default: bool = True) -> None:
        provider_id = provider.id
        self._providers[provider_id] = provider
        if make_default and provider_id not in self._defaults:
            self._defaults.append(provider_id)
        logger.debug(f"Registered {self.kind} provider {provider_id}")

    def unregister_provider(self, provider_id: str) -> bool:
        if provider_id in self._defaults:
            self._defaults.remove(provider_id)
        return self._providers.pop(provider_id, None) is not None

    def get_provider(self, provider_id: str) -> P:
        provider = self._providers.get(provider_id)
        if provider is None:
            raise ValidationError(f'Unknown {self.kind} provider "{provider_id}"')
        return provider

    def list_providers(self) -> List[str]:
        return list(self._providers)

    def get_default_provider(self) -> P:
        if not self._defaults:
            raise ValidationError(f"No default {self.kind} provider registered")
        return self._providers[self._defaults[0]]

    # ---------------------------
    # Quotes
    # ---------------------------
    async def get_all_quotes(self, request: Any) -> List[QuoteOutcome[Q]]:
        provider_ids = self.list_providers()
        results = await asyncio.gather(
            *(self._providers[provider_id].get_quote(request) for provider_id in provider_ids),
            return_exceptions=True,
        )

        outcomes: List[QuoteOutcome[Q]] = []
        for provider_id, result in zip(provider_ids, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.info(f"{self.kind} quote from {provider_id} failed: {result}")
                outcomes.append(QuoteOutcome(provider_id=provider_id, error=str(result)))
            else:
                outcomes.append(QuoteOutcome(provider_id=provider_id, quote=result))
        return outcomes

    async def get_best_quote(
        self,
        request: Any,
        providers: Optional[Sequence[str]] = None,
        max_fee: Optional[int] = None,
        max_time: Optional[int] = None,
        prioritize_fees: bool = True,
    ) -> Optional[BestQuote[Q]]:
        all_quotes = await self.get_all_quotes(request)

        candidates = [
            outcome
            for outcome in all_quotes
            if outcome.quote is not None and (not providers or outcome.provider_id in providers)
        ]
        metrics = self._metrics([outcome.quote for outcome in candidates])

        ranked: List[Tuple[Tuple[float, float, float], QuoteOutcome[Q], float]] = []
        for outcome, (fee, time) in zip(candidates, metrics):
            if max_fee is not None and fee > max_fee:
                continue
            if max_time is not None and time is not None and time > max_time:
                continue
            score = score_route(fee, time, prioritize_fees, self.fee_ceiling, self.time_ceiling)
            time_key = float("inf") if time is None else float(time)
            if prioritize_fees:
                key = (score, float(fee), time_key)
            else:
                key = (score, time_key, float(fee))
            ranked.append((key, outcome, score))

        if not ranked:
            logger.info(f"No {self.kind} quote survived filtering ({len(all_quotes)} provider(s) asked)")
            return None

        ranked.sort(key=lambda item: item[0])
        _, best, score = ranked[0]
        return BestQuote(quote=best.quote, provider_id=best.provider_id, score=score, all_quotes=all_quotes)

    async def build_best_route(self, request: Any, **options: Any) -> Optional[RoutedPreparation[R]]:
        best = await self.get_best_quote(request, **options)
        if best is None:
            return None
        provider = self._providers.get(best.provider_id)
        if provider is None:
            return None
        prepared = await provider.build_route(request)
        logger.info(f"Routed {self.kind} through {best.provider_id} (score {best.score:.2f})")
        return RoutedPreparation(prepared=prepared, provider_id=best.provider_id)

    @abstractmethod
    def _metrics(self, quotes: List[Q]) -> List[Tuple[int, Optional[int]]]:
        """Return ``(fee_base, estimated_time_seconds)`` for each quote."""
        pass


class BridgeAggregator(RouteAggregator[BridgeProvider, BridgeQuote, PreparedBridge]):
    kind = "bridge"

    async def bridge(self, request: BridgeRequest, **options: Any) -> Optional[RoutedPreparation[PreparedBridge]]:
        return await self.build_best_route(request, **options)

    def _metrics(self, quotes: List[BridgeQuote]) -> List[Tuple[int, Optional[int]]]:
        return [(quote.fee_base, quote.estimated_time_seconds) for quote in quotes]


class SwapAggregator(RouteAggregator[SwapProvider, SwapQuote, PreparedSwap]):
    kind = "swap"

    async def swap(self, request: SwapRequest, **options: Any) -> Optional[RoutedPreparation[PreparedSwap]]:
        return await self.build_best_route(request, **options)

    def _metrics(self, quotes: List[SwapQuote]) -> List[Tuple[int, Optional[int]]]:
        # Fee is the output given up against the best quoted output.
        if not quotes:
            return []
        best_out = max(quote.amount_out_base for quote in quotes)
        return [(best_out - quote.amount_out_base, None) for quote in quotes]
