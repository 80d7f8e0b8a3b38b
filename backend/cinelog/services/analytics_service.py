import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cinelog.core.config import Settings, get_settings
from cinelog.core.exceptions import AccessDeniedException, RateLimitExceededException
from cinelog.core.rate_limit import RateLimiter, get_analytics_rate_limiter
from cinelog.schemas.analytics import AnalyticsEvent

logger = logging.getLogger(__name__)


def client_identifier(headers: Dict[str, str], peer: Optional[str]) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer"""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return peer or "unknown"


class AnalyticsService:
    """Ingests client-side analytics events"""

    def __init__(self, limiter: Optional[RateLimiter] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.limiter = limiter or get_analytics_rate_limiter()

    def ensure_enabled(self) -> None:
        if not self.settings.MONITORING_ENABLED:
            raise AccessDeniedException("Monitoring is disabled")

    def check_rate_limit(self, client_id: str) -> None:
        result = self.limiter.hit(client_id)
        if not result.allowed:
            raise RateLimitExceededException("Rate limit exceeded")

    def enrich(self, event: AnalyticsEvent) -> Dict[str, Any]:
        data = event.model_dump()
        data["environment"] = self.settings.ENVIRONMENT
        data["app_version"] = self.settings.APP_VERSION
        data["received_at"] = datetime.now(timezone.utc).isoformat()
        return data

    def process_events(self, events: List[AnalyticsEvent]) -> int:
        processed = 0
        for event in events:
            self._log_event(self.enrich(event))
            processed += 1
        if processed:
            logger.info(f"Processed {processed} analytics events")
        return processed

    def _log_event(self, event: Dict[str, Any]) -> None:
        name = event["name"]
        properties = event.get("properties") or {}
        context = f"session={event.get('session_id')} page={event.get('page')} env={event['environment']}"

        if name == "page_view":
            logger.info(f"Page view: {properties.get('path', event.get('page'))} ({context})")
        elif name == "user_action":
            logger.info(f"User action: {properties.get('action')} on {properties.get('target')} ({context})")
        elif name == "error":
            logger.error(f"Client error: {properties.get('message')} ({context})")
        elif name == "performance":
            logger.info(f"Performance: {properties.get('metric')}={properties.get('value')} ({context})")
        else:
            logger.debug(f"Custom event {name}: {properties} ({context})")
