"""
Tests for address normalization, chain ids, tokens and call encoding.
"""

import pytest

from starkzap.core.errors import ValidationError
from starkzap.types.address import same_address, to_address
from starkzap.types.calls import (
    Call,
    decode_short_string,
    encode_short_string,
    flatten_calls,
    join_u256,
    split_u256,
    to_felt,
)
from starkzap.types.chain import DEVNET, MAINNET, ChainId, NetworkPreset, get_network
from starkzap.types.token import ETH, STRK, Token, get_token_by_address, get_token_by_symbol


class TestAddress:
    def test_pads_to_64_hex_digits(self):
        assert to_address("0xabc") == "0x" + "0" * 61 + "abc"
        assert to_address(0xABC) == to_address("0xABC")

    def test_decimal_string(self):
        assert to_address("2748") == to_address("0xabc")

    @pytest.mark.parametrize("value", ["0xnothex", "-1", True, 2**251])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValidationError):
            to_address(value)

    def test_same_address_ignores_padding(self):
        assert same_address("0x0abc", "0xABC")
        assert not same_address("0xabc", "0xabd")


class TestChainId:
    def test_from_literal_and_felt(self):
        assert ChainId.from_value("sn_main") is ChainId.SN_MAIN
        assert ChainId.from_value(ChainId.SN_SEPOLIA.to_hex()) is ChainId.SN_SEPOLIA
        assert ChainId.from_value(ChainId.SN_MAIN.to_felt()) is ChainId.SN_MAIN

    def test_unknown_chain_raises(self):
        with pytest.raises(ValidationError):
            ChainId.from_value("SN_GOERLI")

    def test_flags(self):
        assert ChainId.SN_MAIN.is_mainnet and ChainId.SN_MAIN.is_starknet
        assert ChainId.ETH_SEPOLIA.is_ethereum and not ChainId.ETH_SEPOLIA.is_mainnet


class TestNetworks:
    def test_get_network_by_name(self):
        assert get_network("Mainnet") is MAINNET
        assert get_network("devnet") is DEVNET
        assert DEVNET.chain_id is ChainId.SN_SEPOLIA

    def test_get_network_passes_presets_through(self):
        custom = NetworkPreset(name="Custom", chain_id=ChainId.SN_MAIN, rpc_url="http://node")
        assert get_network(custom) is custom

    def test_unknown_network_raises(self):
        with pytest.raises(ValidationError, match="Unknown network"):
            get_network("goerli")


class TestTokens:
    def test_token_address_is_normalized(self):
        token = Token(address="0x1", decimals=18, symbol="X")
        assert token.address == to_address(1)

    def test_lookups(self):
        assert get_token_by_symbol("strk") is STRK
        assert get_token_by_address(ETH.address.upper().replace("0X", "0x")) is ETH
        assert get_token_by_address("0x1") is None


class TestCallEncoding:
    def test_u256_split_and_join(self):
        value = (5 << 128) + 7
        assert split_u256(value) == (7, 5)
        assert join_u256(7, 5) == value

    def test_u256_out_of_range(self):
        with pytest.raises(ValidationError):
            split_u256(2**256)
        with pytest.raises(ValidationError):
            split_u256(-1)

    def test_short_strings(self):
        encoded = encode_short_string("STARKNET")
        assert decode_short_string(encoded) == "STARKNET"
        assert decode_short_string(0) == ""
        with pytest.raises(ValidationError):
            encode_short_string("x" * 32)

    def test_to_felt(self):
        assert to_felt("0x10") == 16
        assert to_felt("10") == 10
        with pytest.raises(ValidationError):
            to_felt("ten")

    def test_call_normalizes_fields(self):
        call = Call("0x1", "transfer", ["0x2", 3])
        assert call.contract_address == to_address(1)
        assert call.calldata == [2, 3]

    def test_call_to_rpc(self):
        payload = Call("0x1", "transfer", [2]).to_rpc()
        assert payload["to"] == to_address(1)
        assert payload["calldata"] == ["0x2"]
        assert payload["selector"].startswith("0x")

    def test_call_from_venue_dict(self):
        call = Call.from_dict({"contractAddress": "0x1", "entrypoint": "approve", "calldata": ["0x5"]})
        assert call.entrypoint == "approve"
        assert call.calldata == [5]

    def test_call_from_malformed_dict(self):
        with pytest.raises(ValidationError):
            Call.from_dict({"entrypoint": "approve"})

    def test_flatten_preserves_order(self):
        a, b, c = Call("0x1", "a"), Call("0x2", "b"), Call("0x3", "c")
        assert flatten_calls([[a], [], [b, c]]) == [a, b, c]
