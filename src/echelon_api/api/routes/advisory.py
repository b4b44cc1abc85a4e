from __future__ import annotations

from fastapi import APIRouter, Depends

from echelon_core.advisory import AdvisoryGateway

from echelon_api.api.dependencies import get_gateway

router = APIRouter(prefix="/api/advisory", tags=["Advisory"])


@router.get("/status", description="Shared rate limiter and circuit breaker state.")
async def advisory_status(gateway: AdvisoryGateway = Depends(get_gateway)):
    return {"success": True, "data": gateway.status()}
