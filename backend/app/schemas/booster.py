"""Booster program request/response schemas."""

from pydantic import Field

from app.schemas.common import CamelModel


class BoosterPaymentCreate(CamelModel):
    requester_id: str = Field(..., min_length=1, description="Discord user id")
    twitter_handle: str = Field(..., min_length=1, max_length=64)
    validator_address: str = Field(..., min_length=1)


class BoosterClaimCreate(CamelModel):
    twitter_handle: str = Field(..., min_length=1, max_length=64)


class WhitelistCreate(CamelModel):
    twitter_handle: str = Field(..., min_length=1, max_length=64)
    authorizer_id: str = Field(..., min_length=1)


class PartyResponse(CamelModel):
    account_id: str
    display_name: str
    owner_id: str
    validator_address: str
    pac_amount: int
    usd_price: int
    invoice_id: str
    invoice_url: str
    payment_settled: bool
    bonding_tx_id: str
    created_at: str


class WhitelistResponse(CamelModel):
    account_id: str
    display_name: str
    whitelisted_by: str
    created_at: str


class BoosterStatusResponse(CamelModel):
    all_parties: int
    pac: int
    usd: int
    payment_done: int
    payment_waiting: int
    claimed: int
    unclaimed: int
    whitelists: int
