"""V3 transaction resource bounds and fee estimates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from starknet_py.net.client_models import ResourceBounds as StarknetPyResourceBounds
from starknet_py.net.client_models import ResourceBoundsMapping


@dataclass(frozen=True)
class ResourceBound:
    max_amount: int
    max_price_per_unit: int

    def scaled(self, multiplier: int) -> "ResourceBound":
        return ResourceBound(self.max_amount * multiplier, self.max_price_per_unit * multiplier)

    def to_rpc(self) -> Dict[str, str]:
        return {"max_amount": hex(self.max_amount), "max_price_per_unit": hex(self.max_price_per_unit)}


@dataclass(frozen=True)
class ResourceBounds:
    l1_gas: ResourceBound
    l2_gas: ResourceBound
    l1_data_gas: ResourceBound

    def scaled(self, multiplier: int) -> "ResourceBounds":
        """Multiply every amount and price by ``multiplier``."""
        return ResourceBounds(
            l1_gas=self.l1_gas.scaled(multiplier),
            l2_gas=self.l2_gas.scaled(multiplier),
            l1_data_gas=self.l1_data_gas.scaled(multiplier),
        )

    def to_starknet_py(self) -> ResourceBoundsMapping:
        return ResourceBoundsMapping(
            l1_gas=StarknetPyResourceBounds(self.l1_gas.max_amount, self.l1_gas.max_price_per_unit),
            l2_gas=StarknetPyResourceBounds(self.l2_gas.max_amount, self.l2_gas.max_price_per_unit),
            l1_data_gas=StarknetPyResourceBounds(
                self.l1_data_gas.max_amount, self.l1_data_gas.max_price_per_unit
            ),
        )

    def to_rpc(self) -> Dict[str, Any]:
        return {
            "l1_gas": self.l1_gas.to_rpc(),
            "l2_gas": self.l2_gas.to_rpc(),
            "l1_data_gas": self.l1_data_gas.to_rpc(),
        }


@dataclass(frozen=True)
class FeeEstimate:
    overall_fee: int
    unit: str
    resource_bounds: ResourceBounds
