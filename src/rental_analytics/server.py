"""FastAPI app serving the rental analytics summary and breakdown reports."""
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from .config import configure_logging, load_config
from .dataset import AnalyticsSnapshot
from .models import (
    MaintenanceRecord,
    MaintenanceStatus,
    PaymentRecord,
    PaymentStatus,
    PropertyRecord,
    PropertyStatus,
    TenancyRecord,
    TenancyStatus,
    UserRecord,
    UserRole,
)
from .repository import AnalyticsRepository, InMemoryAnalyticsRepository, build_repository_from_env
from .service import AnalyticsService, get_system_analytics

config = load_config()


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    configure_logging(config)
    yield


app = FastAPI(title="Rental Analytics API", version="0.1.0", lifespan=_lifespan)
repository: Optional[AnalyticsRepository] = build_repository_from_env()


def _normalize_token(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class UserPayload(BaseModel):
    role: UserRole
    is_active: bool = True
    created_at: datetime

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value: Any) -> Any:
        return _normalize_token(value)


class PropertyPayload(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    status: PropertyStatus
    monthly_rent: float = 0.0
    city: Optional[str] = None
    province: Optional[str] = None
    property_type: Optional[str] = None
    total_units: int = 0
    occupied_units: int = 0
    created_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _normalize_token(value)


class TenancyPayload(BaseModel):
    status: TenancyStatus
    created_at: datetime
    property_id: Optional[str] = None
    monthly_rent: Optional[float] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _normalize_token(value)


class PaymentPayload(BaseModel):
    status: PaymentStatus
    amount: float
    method: Optional[str] = None
    payment_type: Optional[str] = None
    created_at: datetime
    property_id: Optional[str] = None
    paid_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _normalize_token(value)


class MaintenancePayload(BaseModel):
    status: MaintenanceStatus
    priority: Optional[str] = None
    category: Optional[str] = None
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    created_at: datetime
    updated_at: datetime
    property_id: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        return _normalize_token(value)


class SnapshotRequest(BaseModel):
    users: List[UserPayload] = Field(default_factory=list)
    properties: List[PropertyPayload] = Field(default_factory=list)
    tenancies: List[TenancyPayload] = Field(default_factory=list)
    payments: List[PaymentPayload] = Field(default_factory=list)
    maintenance: List[MaintenancePayload] = Field(default_factory=list)

    def to_snapshot(self) -> AnalyticsSnapshot:
        return AnalyticsSnapshot(
            users=[UserRecord(**payload.model_dump()) for payload in self.users],
            properties=[PropertyRecord(**payload.model_dump()) for payload in self.properties],
            tenancies=[TenancyRecord(**payload.model_dump()) for payload in self.tenancies],
            payments=[PaymentRecord(**payload.model_dump()) for payload in self.payments],
            maintenance=[MaintenanceRecord(**payload.model_dump()) for payload in self.maintenance],
        )


class AnalyticsRequest(SnapshotRequest):
    time_range: Optional[str] = None
    now: Optional[datetime] = None


class AnalyticsResponse(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    message: Optional[str] = None
    source: str


class BreakdownResponse(BaseModel):
    data: Dict[str, Any]
    source: str


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/analytics", response_model=AnalyticsResponse)
def analytics_from_database(
    time_range: Optional[str] = Query(default=None),
    property_ids: Optional[List[str]] = Query(default=None),
):
    if repository is None:
        raise HTTPException(
            status_code=503,
            detail="RENTAL_ANALYTICS_DATABASE_URL is not configured; POST records to /analytics instead.",
        )

    result = get_system_analytics(repository, time_range, config=config, property_ids=property_ids)
    payload = AnalyticsResponse(source="database", **result.as_dict())
    if not result.success:
        return JSONResponse(status_code=502, content=payload.model_dump())
    return payload


@app.post("/analytics", response_model=AnalyticsResponse)
def analytics_from_payload(request: AnalyticsRequest) -> AnalyticsResponse:
    inline = InMemoryAnalyticsRepository(request.to_snapshot())
    result = get_system_analytics(inline, request.time_range, now=request.now, config=config)
    return AnalyticsResponse(source="inline", **result.as_dict())


@app.post("/analytics/breakdown", response_model=BreakdownResponse)
def breakdown_from_payload(request: SnapshotRequest) -> BreakdownResponse:
    service = AnalyticsService.from_config(request.to_snapshot(), config)
    return BreakdownResponse(data=service.build_breakdowns().as_dict(), source="inline")
