"""Aggregate all v1 routers."""
from fastapi import APIRouter

from .routers.banks import router as banks_router
from .routers.categories import router as categories_router
from .routers.recurring import router as recurring_router
from .routers.statements import router as statements_router
from .routers.transactions import router as transactions_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(banks_router)
v1_router.include_router(statements_router)
v1_router.include_router(categories_router)
v1_router.include_router(transactions_router)
v1_router.include_router(recurring_router)
