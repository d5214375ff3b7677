"""Validator Booster Program endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import Services, get_api_key, get_services
from app.schemas.booster import (
    BoosterClaimCreate,
    BoosterPaymentCreate,
    BoosterStatusResponse,
    PartyResponse,
    WhitelistCreate,
    WhitelistResponse,
)
from app.schemas.common import ERROR_RESPONSES, TransactionResponse

router = APIRouter(prefix="/api/booster", tags=["booster"], responses=ERROR_RESPONSES)


@router.post("/payments", response_model=PartyResponse, status_code=201)
def create_payment(body: BoosterPaymentCreate, services: Services = Depends(get_services)):
    party = services.booster.booster_payment(
        body.requester_id, body.twitter_handle, body.validator_address
    )
    return PartyResponse.model_validate(party)


@router.post("/claims", response_model=TransactionResponse)
def create_booster_claim(body: BoosterClaimCreate, services: Services = Depends(get_services)):
    tx_id = services.booster.booster_claim(body.twitter_handle)
    return TransactionResponse(transaction_id=tx_id)


@router.get("/status", response_model=BoosterStatusResponse)
def booster_status(services: Services = Depends(get_services)):
    return BoosterStatusResponse.model_validate(services.store.booster_status_summary())


@router.get("/parties/{twitter_handle}", response_model=PartyResponse)
def get_party(twitter_handle: str, services: Services = Depends(get_services)):
    party = services.store.lookup_incentive_party(twitter_handle)
    if party is None:
        raise HTTPException(status_code=404, detail="Booster party not found")
    return PartyResponse.model_validate(party)


@router.post("/whitelist", response_model=WhitelistResponse, status_code=201)
def add_whitelist(
    body: WhitelistCreate,
    services: Services = Depends(get_services),
    _key: str = Depends(get_api_key),
):
    entry = services.booster.whitelist(body.twitter_handle, body.authorizer_id)
    return WhitelistResponse.model_validate(entry)


@router.post("/parties/{account_id}/settle", response_model=PartyResponse)
def settle_payment(
    account_id: str,
    services: Services = Depends(get_services),
    _key: str = Depends(get_api_key),
):
    party = services.booster.settle_payment(account_id)
    return PartyResponse.model_validate(party)
