"""Categories router: categories, their matching rules and default seeding."""
from fastapi import APIRouter, HTTPException, Query, status

from compasso.application.errors import DuplicateResourceError, NotFoundError, ValidationError
from compasso.interfaces.api.v1.schemas.categories import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    CategoryWithPatternsResponse,
    PatternCreate,
    PatternCreateResponse,
    PatternExistsResponse,
    PatternResponse,
    QuickPatternCreate,
    SeedRequest,
)
from compasso.interfaces.dependencies import Facade, WorkspaceId

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
async def list_categories(facade: Facade, workspace_id: WorkspaceId):
    cats = await facade.list_categories(workspace_id)
    return [CategoryResponse.model_validate(c) for c in cats]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryCreate, facade: Facade):
    try:
        cat = await facade.create_category(body.workspace_id, body.name, color=body.color, icon=body.icon)
    except DuplicateResourceError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return CategoryResponse.model_validate(cat)


@router.post("/seed", response_model=list[CategoryResponse], status_code=status.HTTP_201_CREATED)
async def seed_categories(body: SeedRequest, facade: Facade):
    cats = await facade.seed_categories(body.workspace_id)
    return [CategoryResponse.model_validate(c) for c in cats]


@router.get("/patterns/exists", response_model=PatternExistsResponse)
async def pattern_exists(
    facade: Facade,
    workspace_id: WorkspaceId,
    bank_id: str = Query(..., min_length=1),
    pattern: str = Query(..., min_length=1),
):
    found = await facade.check_pattern_exists(workspace_id, bank_id, pattern)
    return PatternExistsResponse(exists=found.exists, category_name=found.category_name)


@router.get("/{category_id}", response_model=CategoryWithPatternsResponse)
async def get_category(
    category_id: int,
    facade: Facade,
    workspace_id: WorkspaceId,
    bank_id: str | None = None,
):
    try:
        found = await facade.get_category(category_id, workspace_id, bank_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return CategoryWithPatternsResponse(
        **CategoryResponse.model_validate(found.category).model_dump(),
        patterns=[PatternResponse.model_validate(p) for p in found.patterns],
    )


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: int, body: CategoryUpdate, facade: Facade):
    try:
        cat = await facade.update_category(
            category_id, body.workspace_id, name=body.name, color=body.color, icon=body.icon
        )
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    except DuplicateResourceError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return CategoryResponse.model_validate(cat)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: int, facade: Facade, workspace_id: WorkspaceId):
    try:
        await facade.delete_category(category_id, workspace_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")


@router.post(
    "/{category_id}/patterns",
    response_model=PatternCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_pattern(category_id: int, body: PatternCreate, facade: Facade):
    try:
        result = await facade.create_pattern(
            category_id, body.workspace_id, body.bank_id, body.pattern, body.priority
        )
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    except DuplicateResourceError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return PatternCreateResponse(
        pattern=PatternResponse.model_validate(result.pattern),
        recategorized=result.recategorized,
    )


@router.post(
    "/{category_id}/patterns/quick",
    response_model=PatternResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_quick_pattern(category_id: int, body: QuickPatternCreate, facade: Facade):
    try:
        pattern = await facade.create_quick_pattern(category_id, body.workspace_id, body.bank_id, body.pattern)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    except DuplicateResourceError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return PatternResponse.model_validate(pattern)


@router.delete("/{category_id}/patterns/{pattern_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pattern(category_id: int, pattern_id: int, facade: Facade, workspace_id: WorkspaceId):
    try:
        await facade.delete_pattern(category_id, pattern_id, workspace_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
