"""ERC-20 call builders and balance reads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Union

from .errors import RpcError, ValidationError
from ..providers.base import ChainReader
from ..types.address import to_address
from ..types.amount import Amount
from ..types.calls import Call, join_u256, split_u256
from ..types.token import Token

if TYPE_CHECKING:
    from .execution.tx_handle import TxHandle
    from .wallet.base import BaseWallet


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transfer:
    to: str
    amount: Amount


def is_entrypoint_not_found(error: BaseException) -> bool:
    if isinstance(error, RpcError) and error.code == 21:
        return True
    message = str(error).upper()
    return "ENTRYPOINT_NOT_FOUND" in message or "ENTRY_POINT_NOT_FOUND" in message


class Erc20:
    def __init__(self, token: Token, rpc: ChainReader):
        self.token = token
        self._rpc = rpc

    def _validate_amount(self, amount: Amount) -> None:
        if amount.decimals != self.token.decimals:
            raise ValidationError(
                f"Amount decimals mismatch: expected {self.token.decimals} "
                f"({self.token.symbol}), got {amount.decimals}"
            )
        if amount.symbol is not None and amount.symbol != self.token.symbol:
            raise ValidationError(
                f'Amount symbol mismatch: expected "{self.token.symbol}", got "{amount.symbol}"'
            )

    def populate_approve(self, spender: str, amount: Amount) -> Call:
        self._validate_amount(amount)
        return Call(
            contract_address=self.token.address,
            entrypoint="approve",
            calldata=[int(to_address(spender), 16), *split_u256(amount.to_base())],
        )

    def populate_transfer(self, transfers: Union[Transfer, Sequence[Transfer]]) -> List[Call]:
        if isinstance(transfers, Transfer):
            transfers = [transfers]

        calls = []
        for transfer in transfers:
            self._validate_amount(transfer.amount)
            calls.append(
                Call(
                    contract_address=self.token.address,
                    entrypoint="transfer",
                    calldata=[int(to_address(transfer.to), 16), *split_u256(transfer.amount.to_base())],
                )
            )
        return calls

    async def transfer(
        self,
        wallet: "BaseWallet",
        transfers: Union[Transfer, Sequence[Transfer]],
        **execute_options,
    ) -> "TxHandle":
        return await wallet.execute(self.populate_transfer(transfers), **execute_options)

    async def balance_of(self, owner: Union[str, "BaseWallet"]) -> Amount:
        address = owner if isinstance(owner, str) else owner.address
        calldata = [int(to_address(address), 16)]
        try:
            result = await self._rpc.call_contract(self.token.address, "balance_of", calldata)
        except RpcError as exc:
            if not is_entrypoint_not_found(exc):
                raise
            logger.debug(f"{self.token.symbol} has no balance_of, retrying with balanceOf")
            result = await self._rpc.call_contract(self.token.address, "balanceOf", calldata)

        return Amount.from_base(_decode_balance(result), self.token)


def _decode_balance(result: List[int]) -> int:
    if not result:
        raise RpcError("Empty balance response")
    if len(result) >= 2:
        return join_u256(result[0], result[1])
    return result[0]


def erc20_for(token: Token, rpc: ChainReader, cache: Optional[dict] = None) -> Erc20:
    if cache is None:
        return Erc20(token, rpc)
    if token.address not in cache:
        cache[token.address] = Erc20(token, rpc)
    return cache[token.address]
