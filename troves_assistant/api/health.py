from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..dependencies import ServiceContainer, get_services
from ..types.envelope import utc_timestamp

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, Any]:
    """Liveness probe"""
    return {
        "success": True,
        "message": "Server is healthy",
        "timestamp": utc_timestamp(),
    }


@router.get("/healthz")
async def health_check(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    provider_status = {
        "troves_strategies": await services.catalog.health_check(),
        "starknet": await services.contracts.health_check(),
        "llm": {
            "status": "healthy" if services.processor.llm is not None else "unavailable",
            "provider": services.settings.llm_provider,
        },
    }

    all_healthy = all(
        status["status"] in ["healthy", "unavailable"]
        for status in provider_status.values()
    )
    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] == "healthy"
    )

    return {
        "status": "healthy" if all_healthy and available_providers > 0 else "degraded",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status),
        "messaging": services.messaging.get_status(),
        "timestamp": utc_timestamp(),
    }
