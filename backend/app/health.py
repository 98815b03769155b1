"""Health check module with dependency verification."""

from __future__ import annotations

import time
from typing import Any

from .db.core import ping
from .settings import settings

HEALTHY_STATUSES = {"ok", "disabled", "fallback"}


def _is_configured(value: str | None) -> bool:
    """Return True when a config string is non-empty after trimming."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


class HealthChecker:
    """Health checker for monitoring service dependencies."""

    def __init__(self) -> None:
        self._check_cache: dict[str, tuple[dict[str, Any], float]] = {}
        self._cache_ttl = 30.0  # Cache health checks for 30 seconds

    async def check_all(self) -> dict[str, Any]:
        """
        Check health of all dependencies.

        The remote content service never degrades overall health: while it is
        unreachable the directory serves its built-in records.

        Returns:
            Dict with overall status and individual component checks
        """
        checks = {
            "directory": self._check_directory(),
            "database": await self._check_database(),
            "content_api": self._check_content_api(),
            "sentry": (
                self._check_sentry()
                if _is_configured(settings.SENTRY_DSN)
                else {"status": "disabled"}
            ),
        }

        all_ok = all(check.get("status") in HEALTHY_STATUSES for check in checks.values())

        return {
            "status": "healthy" if all_ok else "degraded",
            "timestamp": time.time(),
            "checks": checks,
        }

    def _check_directory(self) -> dict[str, Any]:
        """Report the size of the live in-memory directory."""
        from .service import service

        directory = service.directory
        return {
            "status": "ok",
            "business_count": len(directory.businesses),
            "active_business_count": sum(1 for b in directory.businesses.list() if b.is_active),
            "category_count": len(directory.categories),
            "blog_post_count": len(directory.blog_posts),
        }

    async def _check_database(self) -> dict[str, Any]:
        """Check that the SQL store answers a trivial query."""
        try:
            await ping()
            return {"status": "ok", "storage_path": str(settings.data_dir)}
        except Exception as exc:
            return {
                "status": "error",
                "error": str(exc),
                "error_type": type(exc).__name__,
            }

    def _check_content_api(self) -> dict[str, Any]:
        """Report the remote content service circuit without calling the service."""
        from .service import service

        client = service.content
        if not client.enabled:
            return {"status": "disabled", "reason": "CONTENT_API_ENABLED is false"}
        snapshot = client.breaker.snapshot()
        return {
            "status": "fallback" if client.breaker.is_open() else "ok",
            "endpoint": settings.content_api_base,
            "circuit": snapshot,
        }

    def _check_sentry(self) -> dict[str, Any]:
        """Check if Sentry is configured (doesn't actually test connectivity)."""
        cache_key = "sentry"
        cached = self._get_cached_check(cache_key)
        if cached is not None:
            return cached

        dsn = settings.SENTRY_DSN or ""
        if "@" in dsn and "//" in dsn:
            result = {
                "status": "ok",
                "environment": settings.SENTRY_ENVIRONMENT,
                "release": settings.SENTRY_RELEASE or "unset",
            }
        else:
            result = {
                "status": "error",
                "error": "Invalid SENTRY_DSN format",
            }

        self._cache_check(cache_key, result)
        return result

    def _get_cached_check(self, key: str) -> dict[str, Any] | None:
        """Get cached health check result if still valid."""
        if key not in self._check_cache:
            return None

        result, timestamp = self._check_cache[key]
        if time.time() - timestamp > self._cache_ttl:
            return None

        return result

    def _cache_check(self, key: str, result: dict[str, Any]) -> None:
        """Cache a health check result."""
        self._check_cache[key] = (result, time.time())

    def clear_cache(self) -> None:
        """Clear cached dependency checks (useful for tests)."""
        self._check_cache.clear()


# Global health checker instance
health_checker = HealthChecker()


__all__ = ["health_checker", "HealthChecker"]
