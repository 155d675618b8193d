from typing import Dict

from ..errors import ValidationError
from ...types.chain import ChainId


STAKING_CONTRACTS: Dict[ChainId, str] = {
    ChainId.SN_MAIN: "0x00ca1702e64c81d9a07b86bd2c540188d92a2c73cf5cc0e508d949015e7e84a7",
    ChainId.SN_SEPOLIA: "0x03745ab04a431fc02871a139be6b93d9260b0ff3e779ad9c8b377183b23109f1",
}


def get_staking_contract(chain_id: ChainId) -> str:
    address = STAKING_CONTRACTS.get(chain_id)
    if address is None:
        raise ValidationError(f"No staking contract known for {chain_id.value}")
    return address
