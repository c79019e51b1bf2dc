"""Statements router: upload a bank statement, confirm its transactions."""
from fastapi import APIRouter, Form, HTTPException, UploadFile, status

from compasso.application.errors import NotFoundError, ValidationError
from compasso.application.statements.commands import ConfirmedTransaction
from compasso.config import get_settings
from compasso.infrastructure.statements.lines import StatementReadError
from compasso.interfaces.api.v1.schemas.statements import (
    ConfirmTransactionsRequest,
    ConfirmTransactionsResponse,
    ParsedTransactionResponse,
    UploadResponse,
)
from compasso.interfaces.dependencies import Facade

router = APIRouter(prefix="/statements", tags=["statements"])


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_statement(
    file: UploadFile,
    facade: Facade,
    bank_id: str = Form(...),
    workspace_id: int = Form(..., gt=0),
):
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Only PDF files are accepted")

    max_bytes = get_settings().max_upload_bytes
    file_bytes = await file.read()
    if len(file_bytes) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large (max {max_bytes // (1024 * 1024)} MB)",
        )

    try:
        result = await facade.process_upload(workspace_id, file.filename, bank_id, file_bytes)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except StatementReadError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    return UploadResponse(
        ledger_id=result.ledger_id,
        filename=result.filename,
        bank_id=result.bank_id,
        transaction_count=result.transaction_count,
        transactions=[ParsedTransactionResponse.model_validate(tx) for tx in result.transactions],
        period_start=result.period_start,
        period_end=result.period_end,
        replaced_ledger_id=result.replaced_ledger_id,
    )


@router.post(
    "/{ledger_id}/confirm",
    response_model=ConfirmTransactionsResponse,
    status_code=status.HTTP_201_CREATED,
)
async def confirm_transactions(ledger_id: int, body: ConfirmTransactionsRequest, facade: Facade):
    rows = [ConfirmedTransaction(**item.model_dump()) for item in body.transactions]
    try:
        inserted = await facade.confirm_transactions(ledger_id, body.workspace_id, rows)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ledger not found")
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return ConfirmTransactionsResponse(ledger_id=ledger_id, inserted=inserted)
