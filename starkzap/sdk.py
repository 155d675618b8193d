"""
SDK entry point.

``StarkZap`` resolves a network preset, owns the shared RPC and paymaster
clients and hands out connected wallets and route aggregators.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from .config import settings
from .core.account.presets import AccountClassTemplate, OpenZeppelinPreset
from .core.account.signer import Signer
from .core.bridge.providers import LayerswapBridgeProvider, OrbiterBridgeProvider, StarkgateBridgeProvider
from .core.routing.aggregator import BridgeAggregator, SwapAggregator
from .core.staking.presets import STAKING_CONTRACTS, get_staking_contract
from .core.swap.providers import AvnuSwapProvider, EkuboSwapProvider
from .core.wallet.browser import BrowserWallet, WalletExtension
from .core.wallet.cartridge import CartridgeWallet, ControllerSession
from .core.wallet.wallet import Wallet
from .logging_config import bind_wallet_context, clear_wallet_context
from .providers.paymaster import DEFAULT_PAYMASTER_URLS, PaymasterProvider
from .providers.starknet_rpc import StarknetRpcProvider
from .types.chain import ChainId, ExplorerConfig, ExplorerProvider, NetworkPreset, get_network


logger = logging.getLogger(__name__)


class StarkZap:
    def __init__(
        self,
        network: Optional[Union[str, NetworkPreset]] = None,
        rpc_url: Optional[str] = None,
        paymaster_url: Optional[str] = None,
        explorer: Optional[ExplorerConfig] = None,
        *,
        rpc: Optional[StarknetRpcProvider] = None,
        paymaster: Optional[PaymasterProvider] = None,
    ) -> None:
        self.network = get_network(network or settings.network)
        self.chain_id: ChainId = self.network.chain_id
        self.rpc_url = rpc_url or settings.resolve_rpc_url(self.network.rpc_url)
        self.rpc = rpc or StarknetRpcProvider(self.rpc_url)
        self.explorer = explorer or ExplorerConfig(
            provider=ExplorerProvider(settings.explorer_provider.lower()),
            base_url=settings.explorer_base_url or None,
        )

        if paymaster is None:
            url = (
                paymaster_url
                or settings.paymaster_url
                or self.network.paymaster_url
                or DEFAULT_PAYMASTER_URLS.get(self.chain_id.value)
            )
            paymaster = PaymasterProvider(url) if url else None
        self.paymaster = paymaster

        logger.info(
            f"StarkZap ready on {self.network.name} ({self.chain_id.value}), "
            f"paymaster {'enabled' if self.paymaster else 'disabled'}"
        )

    # ---------------------------
    # Wallets
    # ---------------------------
    async def connect_wallet(
        self,
        signer: Signer,
        template: AccountClassTemplate = OpenZeppelinPreset,
        *,
        account_address: Optional[str] = None,
        **options: Any,
    ) -> Wallet:
        """Connect a locally signed account.

        ``options`` are forwarded to ``Wallet`` (``fee_mode``, ``time_bounds``,
        ``swap_providers``, ``bridge_providers``...).
        """
        wallet = await Wallet.create(
            signer,
            self.rpc,
            self.chain_id,
            self.rpc_url,
            template=template,
            account_address=account_address,
            **self._wallet_options(options, paymaster=self.paymaster),
        )
        bind_wallet_context(wallet.address, self.chain_id.value)
        logger.info(f"Connected {template.name} wallet {wallet.address}")
        return wallet

    async def connect_browser_wallet(self, extension: WalletExtension, **options: Any) -> BrowserWallet:
        wallet = await BrowserWallet.create(extension, self.rpc, self.chain_id, **self._wallet_options(options))
        bind_wallet_context(wallet.address, self.chain_id.value)
        return wallet

    async def connect_cartridge(self, session: ControllerSession, **options: Any) -> CartridgeWallet:
        wallet = CartridgeWallet(session, self.rpc, self.chain_id, **self._wallet_options(options))
        bind_wallet_context(wallet.address, self.chain_id.value)
        return wallet

    def _wallet_options(self, options: dict, **extra: Any) -> dict:
        merged = {
            "explorer": self.explorer,
            "staking_contract": STAKING_CONTRACTS.get(self.chain_id),
            **extra,
            **options,
        }
        merged.setdefault("swap_providers", self.swap_aggregator())
        merged.setdefault("bridge_providers", self.bridge_aggregator())
        return merged

    # ---------------------------
    # Routing and staking
    # ---------------------------
    def swap_aggregator(self) -> SwapAggregator:
        return SwapAggregator([AvnuSwapProvider(), EkuboSwapProvider()])

    def bridge_aggregator(self) -> BridgeAggregator:
        return BridgeAggregator(
            [StarkgateBridgeProvider(), OrbiterBridgeProvider(), LayerswapBridgeProvider()]
        )

    def staking_contract(self) -> str:
        return get_staking_contract(self.chain_id)

    # ---------------------------
    # Lifecycle
    # ---------------------------
    async def close(self) -> None:
        await self.rpc.close()
        if self.paymaster is not None:
            await self.paymaster.close()
        clear_wallet_context()

    async def __aenter__(self) -> "StarkZap":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
