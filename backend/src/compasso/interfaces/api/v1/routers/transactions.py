"""Transactions router: manual category assignment."""
from fastapi import APIRouter, HTTPException, status

from compasso.application.errors import NotFoundError
from compasso.interfaces.api.v1.schemas.statements import (
    TransactionCategoryUpdate,
    TransactionResponse,
)
from compasso.interfaces.dependencies import Facade

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.patch("/{transaction_id}/category", response_model=TransactionResponse)
async def update_transaction_category(
    transaction_id: int, body: TransactionCategoryUpdate, facade: Facade
):
    try:
        tx = await facade.update_transaction_category(transaction_id, body.workspace_id, body.category_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return TransactionResponse.model_validate(tx)
