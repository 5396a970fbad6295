"""
Health monitoring for mdtoword-mcp server.

Provides HealthMonitor class that tracks Python process memory, system memory
percentage, style cache utilization, and conversion counters. Exposes metrics
through MCP tool interface and the HTTP gateway's /health endpoint.

Key features:
- psutil-based resource tracking (process memory, system memory %)
- Style cache metrics (entries, capacity, hits, misses)
- Conversion counters (completed, failed, images, placeholders)
- Status assessment (healthy/degraded/unhealthy) based on thresholds
- Alert generation for actionable issues
"""

import threading
from typing import Dict, List

import psutil

from .config import settings
from .logging_config import get_logger
from .style_engine import style_engine

logger = get_logger(__name__)


class HealthMonitor:
    """
    Health monitor with configurable thresholds.

    Status logic:
    - UNHEALTHY: System memory above threshold
    - DEGRADED: System memory within 10 points of threshold OR failed conversions > 0
    - HEALTHY: Otherwise
    """

    def __init__(self, memory_threshold_percent: float = None):
        """
        Initialize health monitor.

        Args:
            memory_threshold_percent: System memory % threshold for unhealthy
                                      (default: settings.MEMORY_THRESHOLD_PERCENT)
        """
        self.memory_threshold_percent = (
            memory_threshold_percent
            if memory_threshold_percent is not None
            else settings.MEMORY_THRESHOLD_PERCENT
        )
        self._lock = threading.Lock()

        # Metrics
        self.conversions_completed = 0
        self.conversions_failed = 0
        self.images_resolved = 0
        self.image_placeholders = 0

        logger.debug("health_monitor_initialized", memory_threshold=self.memory_threshold_percent)

    def record_conversion(self, success: bool, images: int = 0, placeholders: int = 0) -> None:
        """Count one finished conversion attempt."""
        with self._lock:
            if success:
                self.conversions_completed += 1
            else:
                self.conversions_failed += 1
            self.images_resolved += images
            self.image_placeholders += placeholders

    def check_health(self) -> Dict:
        """
        Check server health and return comprehensive metrics.

        Returns:
            Dictionary with keys:
            - status: "healthy" | "degraded" | "unhealthy"
            - process_memory_mb: Current process memory usage in MB
            - system_memory_percent: System-wide memory usage percentage
            - style_cache: Dict with entries, max_entries, hits, misses
            - conversions: Dict with completed, failed, images, placeholders
            - alerts: List of actionable alert messages (empty if healthy)
        """
        process = psutil.Process()
        process_memory_mb = process.memory_info().rss / (1024 * 1024)
        system_memory_percent = psutil.virtual_memory().percent

        cache = style_engine.cache
        with self._lock:
            conversions = {
                "completed": self.conversions_completed,
                "failed": self.conversions_failed,
                "images": self.images_resolved,
                "placeholders": self.image_placeholders,
            }

        alerts: List[str] = []
        status = "healthy"

        if system_memory_percent > self.memory_threshold_percent:
            status = "unhealthy"
            alerts.append(
                f"System memory at {system_memory_percent:.1f}% "
                f"(threshold: {self.memory_threshold_percent:.1f}%)"
            )

        if status == "healthy":
            degraded_threshold = self.memory_threshold_percent - 10
            if system_memory_percent > degraded_threshold:
                status = "degraded"
                alerts.append(
                    f"System memory at {system_memory_percent:.1f}% "
                    f"(warning threshold: {degraded_threshold:.1f}%)"
                )

            if conversions["failed"] > 0:
                status = "degraded"
                alerts.append(
                    f"Conversion failures detected: {conversions['failed']} "
                    f"(check logs for details)"
                )

        if status in ("degraded", "unhealthy"):
            logger.warning(
                "health_check_warning",
                status=status,
                process_memory_mb=process_memory_mb,
                system_memory_percent=system_memory_percent,
                conversions_failed=conversions["failed"],
                alerts=alerts
            )

        return {
            "status": status,
            "process_memory_mb": process_memory_mb,
            "system_memory_percent": system_memory_percent,
            "style_cache": {
                "entries": len(cache),
                "max_entries": cache.max_entries,
                "hits": cache.hits,
                "misses": cache.misses,
            },
            "conversions": conversions,
            "alerts": alerts,
        }


# Module-level singleton
health_monitor = HealthMonitor()
