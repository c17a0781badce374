"""
HTTP routes for the PapayaFresh API.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from papayafresh.catalog import CatalogService
from papayafresh.config import Settings, get_settings
from papayafresh.dashboard import fallback_summary
from papayafresh.dependencies import get_catalog_service
from papayafresh.schemas import (
    DashboardStatsResponse,
    DebugDatabaseResponse,
    DeletedUserInfo,
    DeleteUserResponse,
    HealthResponse,
    HistoryResponse,
    ListScansResponse,
    ListUsersResponse,
    ShelfResponse,
)
from papayafresh.store import json_safe

logger = logging.getLogger(__name__)

router = APIRouter()

ENDPOINTS = [
    ("GET", "/health"),
    ("GET", "/users/all"),
    ("DELETE", "/users/delete/:userId"),
    ("GET", "/users/:userId/shelf"),
    ("GET", "/users/:userId/history"),
    ("GET", "/scans/all"),
    ("GET", "/dashboard/stats"),
    ("GET", "/debug/database"),
]


def available_endpoints(prefix: str) -> list[str]:
    return [f"{method:<6} {prefix}{path}" for method, path in ENDPOINTS]


@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings)):
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        server=settings.server_name,
        version=settings.server_version,
    )


@router.get(
    "/dashboard/stats",
    response_model=DashboardStatsResponse,
    responses={500: {"description": "Fallback summary with an error message"}},
)
def dashboard_stats(catalog: CatalogService = Depends(get_catalog_service)):
    """
    Aggregate counts, ripeness split, weekly scans and recent activity.

    If the users collection cannot be read for any reason, a placeholder
    summary is served with a 500 so the dashboard still renders.
    """
    try:
        summary = catalog.dashboard_stats()
    except Exception as exc:
        logger.exception("Dashboard error")
        return JSONResponse(status_code=500, content=fallback_summary(str(exc)))
    return DashboardStatsResponse.model_validate(summary.to_json())


@router.get(
    "/users/all", response_model=ListUsersResponse, response_model_exclude_none=True
)
def list_users(catalog: CatalogService = Depends(get_catalog_service)):
    users = catalog.list_users_with_counts()
    return ListUsersResponse(totalUsers=len(users), users=users)


@router.get("/scans/all", response_model=ListScansResponse)
def list_scans(catalog: CatalogService = Depends(get_catalog_service)):
    scans = catalog.list_all_scans()
    return ListScansResponse(
        totalScans=len(scans),
        scans=[json_safe(scan.to_json(include_details=False)) for scan in scans],
    )


@router.get("/users/{user_id}/shelf", response_model=ShelfResponse)
def get_user_shelf(user_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    shelf = catalog.get_shelf(user_id)
    return ShelfResponse(
        userId=user_id,
        shelfCount=len(shelf),
        shelf=[doc.to_json() for doc in shelf],
    )


@router.get("/users/{user_id}/history", response_model=HistoryResponse)
def get_user_history(
    user_id: str, catalog: CatalogService = Depends(get_catalog_service)
):
    history = catalog.get_history(user_id)
    return HistoryResponse(
        userId=user_id,
        historyCount=len(history),
        history=[doc.to_json() for doc in history],
    )


@router.delete("/users/delete/{user_id}", response_model=DeleteUserResponse)
def delete_user(user_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    logger.info("DELETE /users/delete/%s", user_id)
    deleted = catalog.delete_user(user_id)
    return DeleteUserResponse(
        deletedUser=DeletedUserInfo(
            userId=deleted.user_id,
            email=deleted.email,
            shelfDeleted=deleted.shelf_deleted,
            historyDeleted=deleted.history_deleted,
            authDeleted=deleted.auth_deleted,
        )
    )


@router.get("/debug/database", response_model=DebugDatabaseResponse)
def debug_database(catalog: CatalogService = Depends(get_catalog_service)):
    logger.info("Debugging database structure...")
    return DebugDatabaseResponse(**catalog.describe_database())
