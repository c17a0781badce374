"""
Pydantic schemas for the PapayaFresh API responses.

Field names follow the camelCase JSON the admin console already consumes.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: Literal["OK"] = "OK"
    timestamp: str
    server: str
    version: str


class RipenessDistribution(BaseModel):
    unripe: int = Field(..., ge=0)
    ripe: int = Field(..., ge=0)
    overripe: int = Field(..., ge=0)


class Activity(BaseModel):
    user: str
    action: str
    time: str
    type: Optional[Literal["scan", "history"]] = None


class UserStats(BaseModel):
    averageScansPerUser: Union[str, int]
    activeUsers: int
    totalShelfItems: int
    totalHistoryItems: int


class DashboardDebug(BaseModel):
    usersFound: int
    shelfItemsFound: int
    historyItemsFound: int
    userIds: list[str]
    failedUserIds: list[str] = []


class DashboardStatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    totalUsers: int
    newUsers: int
    totalScans: int
    papayasOnShelf: int
    ripenessDistribution: RipenessDistribution
    weeklyScans: list[int] = Field(..., min_length=4, max_length=4)
    recentActivities: list[Activity]
    userStats: UserStats
    debug: DashboardDebug = Field(..., alias="_debug")


class UserSummary(BaseModel):
    userId: str
    email: str
    user_id: str
    created_at: Any
    shelfCount: int
    historyCount: int
    totalScans: int
    userData: Optional[dict] = None
    error: Optional[str] = None


class ListUsersResponse(BaseModel):
    success: bool = True
    totalUsers: int
    users: list[UserSummary]


class ListScansResponse(BaseModel):
    success: bool = True
    totalScans: int
    scans: list[dict]


class ShelfResponse(BaseModel):
    success: bool = True
    userId: str
    shelfCount: int
    shelf: list[dict]


class HistoryResponse(BaseModel):
    success: bool = True
    userId: str
    historyCount: int
    history: list[dict]


class DeletedUserInfo(BaseModel):
    userId: str
    email: Optional[str] = None
    shelfDeleted: int
    historyDeleted: int
    authDeleted: bool


class DeleteUserResponse(BaseModel):
    success: bool = True
    message: str = "User deleted successfully"
    deletedUser: DeletedUserInfo


class DebugDatabaseResponse(BaseModel):
    success: bool = True
    collections: list[str]
    totalUsers: int
    sampleUsers: list[dict]
    databaseStructure: dict


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
    message: Optional[str] = None
    availableEndpoints: Optional[list[str]] = None
