from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Request, status

from cinelog.core.exceptions import BaseAppException
from cinelog.schemas.analytics import AnalyticsPayload, AnalyticsResponse
from cinelog.services.analytics_service import AnalyticsService, client_identifier

router = APIRouter(prefix="/analytics", tags=["analytics"])

def handle_exception(e: Exception) -> HTTPException:
    """Handle exceptions and convert to HTTPException"""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, BaseAppException):
        return HTTPException(
            status_code=e.status_code,
            detail=e.message
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to process analytics"
    )

def get_analytics_service() -> AnalyticsService:
    return AnalyticsService()

@router.post("", response_model=AnalyticsResponse)
async def ingest_events(request: Request, analytics: AnalyticsService = Depends(get_analytics_service)):
    """Accept a batch of client analytics events.

    The monitoring switch and rate limit are checked before the body is parsed.
    """
    try:
        analytics.ensure_enabled()
        peer = request.client.host if request.client else None
        analytics.check_rate_limit(client_identifier(request.headers, peer))

        try:
            payload = AnalyticsPayload.model_validate(await request.json())
        except Exception:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid analytics data")

        processed = analytics.process_events(payload.events)
        return AnalyticsResponse(
            success=True,
            processed=processed,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
    except Exception as e:
        raise handle_exception(e)
