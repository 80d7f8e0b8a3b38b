import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from cinelog.core.enums import HealthStatus
from cinelog.services.health_service import HealthService, CheckResult, http_status_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

NO_CACHE = "no-cache, no-store, must-revalidate"

def get_health_service() -> HealthService:
    return HealthService()

def _headers(overall: str, response_time: float) -> dict:
    return {
        "X-Health-Status": overall,
        "X-Response-Time": f"{response_time:.0f}ms",
        "Cache-Control": NO_CACHE,
    }

@router.api_route("", methods=["GET", "HEAD"])
def health(
    request: Request,
    format: str = Query("json", description="json or simple"),
    detailed: bool = Query(False),
    health_service: HealthService = Depends(get_health_service)
):
    """Aggregate health of the database, cache, TMDB, memory and disk"""
    start = time.perf_counter()
    try:
        result = health_service.perform_health_check()
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        elapsed = (time.perf_counter() - start) * 1000
        body = {
            "status": HealthStatus.DOWN.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": "Health check failed",
            "message": str(e),
        }
        return JSONResponse(body, status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            headers=_headers(HealthStatus.DOWN.value, elapsed))

    overall = HealthStatus(result["status"])
    headers = _headers(overall.value, (time.perf_counter() - start) * 1000)

    if request.method == "HEAD":
        return Response(status_code=http_status_for(overall), headers=headers)

    if format == "simple":
        all_up = all(check["status"] == HealthStatus.UP.value for check in result["checks"].values())
        return PlainTextResponse(
            "OK" if all_up else "NOT OK",
            status_code=status.HTTP_200_OK if all_up else status.HTTP_503_SERVICE_UNAVAILABLE,
            headers=headers,
        )

    body = health_service.get_detailed_status(result) if detailed else result
    return JSONResponse(body, status_code=http_status_for(overall), headers=headers)

def _check_response(result: CheckResult, always_ok: bool = False) -> JSONResponse:
    code = status.HTTP_200_OK if always_ok else http_status_for(result.status)
    return JSONResponse(
        {**result.to_dict(), "timestamp": datetime.now(timezone.utc).isoformat()},
        status_code=code,
        headers={"Cache-Control": NO_CACHE},
    )

@router.get("/database")
def database_health(health_service: HealthService = Depends(get_health_service)):
    return _check_response(health_service.check_database())

@router.get("/cache")
def cache_health(health_service: HealthService = Depends(get_health_service)):
    return _check_response(health_service.check_cache())

@router.get("/external-apis")
def external_apis_health(health_service: HealthService = Depends(get_health_service)):
    return _check_response(health_service.check_external_apis())

@router.get("/memory")
def memory_health(health_service: HealthService = Depends(get_health_service)):
    """Memory usage; informational, always 200"""
    return _check_response(health_service.check_memory(), always_ok=True)

@router.get("/disk-space")
def disk_space_health(health_service: HealthService = Depends(get_health_service)):
    """Disk usage; informational, always 200"""
    return _check_response(health_service.check_disk_space(), always_ok=True)
