"""Banks router: supported statement formats."""
from fastapi import APIRouter

from compasso.interfaces.api.v1.schemas.statements import BankResponse
from compasso.interfaces.dependencies import Facade

router = APIRouter(prefix="/banks", tags=["banks"])


@router.get("", response_model=list[BankResponse])
async def list_banks(facade: Facade):
    return [BankResponse.model_validate(bank) for bank in facade.list_banks()]
