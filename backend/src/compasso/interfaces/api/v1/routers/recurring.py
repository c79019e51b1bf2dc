"""Recurring router: detection, listing, summary and pattern management."""
from fastapi import APIRouter, HTTPException, status

from compasso.application.errors import NotFoundError, ValidationError
from compasso.interfaces.api.v1.schemas.recurring import (
    DetectedPatternResponse,
    DetectRequest,
    DetectResponse,
    RecurringPatternResponse,
    RecurringPatternUpdate,
    RecurringSummaryResponse,
)
from compasso.interfaces.api.v1.schemas.statements import TransactionResponse
from compasso.interfaces.dependencies import Facade, WorkspaceId

router = APIRouter(prefix="/recurring", tags=["recurring"])


@router.get("", response_model=list[RecurringPatternResponse])
async def list_recurring(facade: Facade, workspace_id: WorkspaceId):
    patterns = await facade.list_recurring(workspace_id)
    return [RecurringPatternResponse.model_validate(p) for p in patterns]


@router.post("/detect", response_model=DetectResponse)
async def detect_recurring(body: DetectRequest, facade: Facade):
    result = await facade.detect_recurring(body.workspace_id)
    return DetectResponse(
        detected=result.detected,
        patterns=[DetectedPatternResponse.model_validate(p) for p in result.patterns],
    )


@router.get("/summary", response_model=RecurringSummaryResponse)
async def recurring_summary(facade: Facade, workspace_id: WorkspaceId):
    return RecurringSummaryResponse.model_validate(await facade.recurring_summary(workspace_id))


@router.get("/{pattern_id}/transactions", response_model=list[TransactionResponse])
async def recurring_transactions(pattern_id: int, facade: Facade, workspace_id: WorkspaceId):
    try:
        txs = await facade.recurring_transactions(pattern_id, workspace_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pattern not found")
    return [TransactionResponse.model_validate(tx) for tx in txs]


@router.patch("/{pattern_id}", response_model=RecurringPatternResponse)
async def update_recurring(pattern_id: int, body: RecurringPatternUpdate, facade: Facade):
    try:
        pattern = await facade.update_recurring(
            pattern_id,
            body.workspace_id,
            **body.model_dump(exclude_none=True, exclude={"workspace_id"}),
        )
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pattern not found")
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return RecurringPatternResponse.model_validate(pattern)


@router.delete("/{pattern_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring(pattern_id: int, facade: Facade, workspace_id: WorkspaceId):
    try:
        await facade.delete_recurring(pattern_id, workspace_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pattern not found")
