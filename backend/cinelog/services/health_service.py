import logging
import os
import shutil
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional

from sqlalchemy import text

from cinelog.core.cache import CacheService
from cinelog.core.config import Settings, get_settings
from cinelog.core.enums import HealthStatus
from cinelog.core.interfaces import TMDBClientInterface
from cinelog.core.tmdb_service import TMDBServiceFactory
from cinelog.db import SessionLocal

logger = logging.getLogger(__name__)

STARTED_AT = time.time()

# Thresholds (milliseconds / usage ratios)
DATABASE_SLOW_MS = 1000
CACHE_SLOW_MS = 500
EXTERNAL_API_SLOW_MS = 2000
EXTERNAL_API_TIMEOUT_SECONDS = 10
USAGE_WARNING = 0.8
USAGE_CRITICAL = 0.9


@dataclass
class CheckResult:
    status: HealthStatus
    response_time: float
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "responseTime": round(self.response_time, 2),
            "message": self.message,
            "details": self.details,
        }


def aggregate_status(statuses: Iterable[HealthStatus]) -> HealthStatus:
    """down if any check is down, else degraded if any is degraded, else up"""
    statuses = list(statuses)
    if HealthStatus.DOWN in statuses:
        return HealthStatus.DOWN
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.UP


def http_status_for(status: HealthStatus) -> int:
    return 503 if status == HealthStatus.DOWN else 200


def classify_usage(usage: float, label: str):
    if usage >= USAGE_CRITICAL:
        return HealthStatus.DOWN, f"Critical {label} usage"
    if usage >= USAGE_WARNING:
        return HealthStatus.DEGRADED, f"High {label} usage"
    return HealthStatus.UP, f"{label.capitalize()} usage is normal"


def elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def read_memory_usage() -> Dict[str, int]:
    """System memory in bytes: total, available, used"""
    meminfo = "/proc/meminfo"
    if os.path.exists(meminfo):
        values = {}
        with open(meminfo) as fh:
            for line in fh:
                name, _, rest = line.partition(":")
                values[name] = int(rest.split()[0]) * 1024
        total = values["MemTotal"]
        available = values.get("MemAvailable", values.get("MemFree", 0))
    else:
        page_size = os.sysconf("SC_PAGE_SIZE")
        total = page_size * os.sysconf("SC_PHYS_PAGES")
        available = page_size * os.sysconf("SC_AVPHYS_PAGES")
    return {"total": total, "available": available, "used": total - available}


def read_disk_usage(path: str) -> Dict[str, int]:
    usage = shutil.disk_usage(path)
    return {"total": usage.total, "available": usage.free, "used": usage.used}


class HealthService:
    """Runs the independent health checks and reduces them to one status"""

    def __init__(
        self,
        session_factory: Callable = SessionLocal,
        cache: Optional[CacheService] = None,
        catalog_client: Optional[TMDBClientInterface] = None,
        memory_probe: Callable[[], Dict[str, int]] = read_memory_usage,
        disk_probe: Callable[[str], Dict[str, int]] = read_disk_usage,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory
        self.cache = cache
        self.catalog_client = catalog_client
        self.memory_probe = memory_probe
        self.disk_probe = disk_probe

    def check_database(self) -> CheckResult:
        start = time.perf_counter()
        db = self.session_factory()
        try:
            try:
                db.execute(text("SELECT 1"))
                connect_time = elapsed_ms(start)
            except Exception as e:
                logger.error(f"Database health check failed: {str(e)}")
                return CheckResult(HealthStatus.DOWN, elapsed_ms(start), "Database connection failed",
                                   {"error": str(e)})

            perf_start = time.perf_counter()
            try:
                db.execute(text("SELECT COUNT(*) FROM movies"))
            except Exception as e:
                logger.warning(f"Database performance check failed: {str(e)}")
                return CheckResult(HealthStatus.DEGRADED, elapsed_ms(start), "Database performance check failed",
                                   {"error": str(e)})
            query_time = elapsed_ms(perf_start)
        finally:
            db.close()

        details = {"connectTime": round(connect_time, 2), "queryTime": round(query_time, 2),
                   "threshold": DATABASE_SLOW_MS}
        if query_time > DATABASE_SLOW_MS:
            return CheckResult(HealthStatus.DEGRADED, elapsed_ms(start), "Database performance degraded", details)
        return CheckResult(HealthStatus.UP, elapsed_ms(start), "Database connection successful", details)

    def check_cache(self) -> CheckResult:
        start = time.perf_counter()
        cache = self.cache or CacheService()
        if not cache.enabled:
            return CheckResult(HealthStatus.UP, 0, "Redis not configured - cache disabled", {"configured": False})

        try:
            timings = cache.round_trip()
        except Exception as e:
            # a cache outage degrades the service but does not take it down
            logger.warning(f"Cache health check failed: {str(e)}")
            return CheckResult(HealthStatus.DEGRADED, elapsed_ms(start), "Redis cache check failed",
                               {"error": str(e), "configured": True})

        total = elapsed_ms(start)
        details = {**timings, "threshold": CACHE_SLOW_MS, "configured": True}
        if total > CACHE_SLOW_MS:
            return CheckResult(HealthStatus.DEGRADED, total, "Redis cache performance degraded", details)
        return CheckResult(HealthStatus.UP, total, "Redis cache is healthy", details)

    def check_external_apis(self) -> CheckResult:
        start = time.perf_counter()
        tmdb = self._check_tmdb()
        checks = [tmdb]
        status = aggregate_status(HealthStatus(c["status"]) for c in checks)
        summary = {
            "total": len(checks),
            "up": sum(1 for c in checks if c["status"] == HealthStatus.UP.value),
            "degraded": sum(1 for c in checks if c["status"] == HealthStatus.DEGRADED.value),
            "down": sum(1 for c in checks if c["status"] == HealthStatus.DOWN.value),
        }
        message = "External APIs are healthy" if status == HealthStatus.UP else tmdb["message"]
        return CheckResult(status, elapsed_ms(start), message, {"checks": checks, "summary": summary})

    def _check_tmdb(self) -> Dict[str, Any]:
        start = time.perf_counter()
        result = {"name": "TMDB API"}
        if not self.settings.TMDB_API_KEY:
            return {**result, "status": HealthStatus.DOWN.value, "responseTime": 0,
                    "message": "TMDB API key not configured", "details": {"configured": False}}

        client = self.catalog_client or TMDBServiceFactory.create_client()
        try:
            response = client.make_request("search/movie", {"query": "test", "page": 1},
                                           timeout=EXTERNAL_API_TIMEOUT_SECONDS)
            if not response.success:
                raise RuntimeError(f"TMDB API returned {response.status_code}")
        except Exception as e:
            return {**result, "status": HealthStatus.DOWN.value, "responseTime": round(elapsed_ms(start), 2),
                    "message": "TMDB API is unavailable", "details": {"error": str(e), "configured": True}}

        response_time = elapsed_ms(start)
        degraded = response_time > EXTERNAL_API_SLOW_MS
        return {
            **result,
            "status": (HealthStatus.DEGRADED if degraded else HealthStatus.UP).value,
            "responseTime": round(response_time, 2),
            "message": "TMDB API response time degraded" if degraded else "TMDB API is healthy",
            "details": {
                "statusCode": response.status_code,
                "resultCount": len(response.data.get("results") or []),
                "totalResults": response.data.get("total_results", 0),
                "threshold": EXTERNAL_API_SLOW_MS,
            },
        }

    def _usage_check(self, label: str, probe: Callable[[], Dict[str, int]]) -> CheckResult:
        start = time.perf_counter()
        try:
            info = probe()
            usage = info["used"] / info["total"]
        except Exception as e:
            return CheckResult(HealthStatus.DEGRADED, elapsed_ms(start), f"{label.capitalize()} usage check failed",
                               {"error": str(e), "note": f"{label.capitalize()} monitoring may not be available in this environment"})

        status, message = classify_usage(usage, label)
        details = {
            "usage": round(usage, 4),
            "used": info["used"],
            "available": info["available"],
            "total": info["total"],
            "usedPercentage": round(usage * 100),
            "availablePercentage": round(info["available"] / info["total"] * 100),
            "thresholds": {"warning": USAGE_WARNING, "critical": USAGE_CRITICAL},
        }
        return CheckResult(status, elapsed_ms(start), message, details)

    def check_memory(self) -> CheckResult:
        return self._usage_check("memory", self.memory_probe)

    def check_disk_space(self) -> CheckResult:
        return self._usage_check("disk space", lambda: self.disk_probe(self.settings.DISK_CHECK_PATH))

    def run_checks(self) -> Dict[str, CheckResult]:
        """Run every check concurrently"""
        runners = {
            "database": self.check_database,
            "cache": self.check_cache,
            "externalApis": self.check_external_apis,
            "diskSpace": self.check_disk_space,
            "memory": self.check_memory,
        }
        with ThreadPoolExecutor(max_workers=len(runners)) as pool:
            futures = {name: pool.submit(runner) for name, runner in runners.items()}
            results = {}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception as e:
                    logger.error(f"Health check {name} raised: {str(e)}")
                    results[name] = CheckResult(HealthStatus.DOWN, 0, "Health check error", {"error": str(e)})
        return results

    def uptime(self) -> float:
        return round(time.time() - STARTED_AT, 3)

    def perform_health_check(self) -> Dict[str, Any]:
        start = time.perf_counter()
        checks = self.run_checks()
        status = aggregate_status(result.status for result in checks.values())
        response_time = elapsed_ms(start)

        logger.info(f"Health check completed: {status.value} in {response_time:.0f}ms")
        return {
            "status": status.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": self.uptime(),
            "version": self.settings.APP_VERSION,
            "environment": self.settings.ENVIRONMENT,
            "checks": {name: result.to_dict() for name, result in checks.items()},
            "responseTime": round(response_time, 2),
        }

    def get_health_config(self) -> Dict[str, Any]:
        return {
            "environment": self.settings.ENVIRONMENT,
            "isProduction": self.settings.ENVIRONMENT == "production",
            "uptime": self.uptime(),
            "version": self.settings.APP_VERSION,
            "checks": {
                "database": "Database connection and query performance",
                "cache": "Cache system health and performance",
                "externalApis": "External API connectivity (TMDB)",
                "diskSpace": "Disk space usage and availability",
                "memory": "Memory usage and availability",
            },
        }

    def get_detailed_status(self, health: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        health = health or self.perform_health_check()
        return {
            **health,
            "config": self.get_health_config(),
            "thresholds": {
                "databaseResponseTime": DATABASE_SLOW_MS,
                "cacheResponseTime": CACHE_SLOW_MS,
                "externalApiResponseTime": EXTERNAL_API_SLOW_MS,
                "diskSpaceThreshold": USAGE_CRITICAL,
                "memoryThreshold": USAGE_CRITICAL,
            },
        }
