"""Testnet reward claim endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import Services, get_services
from app.schemas.claims import ClaimCreate, ClaimerResponse, ClaimStatusResponse
from app.schemas.common import ERROR_RESPONSES, TransactionResponse

router = APIRouter(prefix="/api", tags=["claims"], responses=ERROR_RESPONSES)


@router.post("/claims", response_model=TransactionResponse)
def create_claim(body: ClaimCreate, services: Services = Depends(get_services)):
    tx_id = services.claims.claim(body.requester_id, body.testnet_address, body.mainnet_address)
    return TransactionResponse(transaction_id=tx_id)


@router.get("/claims/status", response_model=ClaimStatusResponse)
def claim_status(services: Services = Depends(get_services)):
    return ClaimStatusResponse.model_validate(services.store.claim_status_summary())


@router.get("/claims/{testnet_address}", response_model=ClaimerResponse)
def get_claimer(testnet_address: str, services: Services = Depends(get_services)):
    record = services.store.lookup_claim(testnet_address)
    if record is None:
        raise HTTPException(status_code=404, detail="Claimer not found")
    return ClaimerResponse.model_validate(record)
