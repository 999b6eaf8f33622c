from fastapi import APIRouter

from eventwow_api.routers.v1 import (
    categories,
    ranking,
    seo,
    suppliers,
)

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(suppliers.router)
v1_router.include_router(categories.router)
v1_router.include_router(seo.router)
v1_router.include_router(ranking.router)
