"""Testnet reward claim request/response schemas."""

from pydantic import Field

from app.schemas.common import CamelModel


class ClaimCreate(CamelModel):
    requester_id: str = Field(..., min_length=1, description="Discord user id")
    testnet_address: str = Field(..., min_length=1)
    mainnet_address: str = Field(..., min_length=1)


class ClaimerResponse(CamelModel):
    testnet_address: str
    owner_id: str
    total_reward: int
    claimed_tx_id: str
    is_claimed: bool


class ClaimStatusResponse(CamelModel):
    claimed: int
    claimed_amount: int
    not_claimed: int
    not_claimed_amount: int
