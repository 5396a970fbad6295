"""
Monitoring MCP tool for mdtoword-mcp server.

Provides get_server_health() function that returns formatted health report
for consumption by MCP clients.
"""


def get_server_health() -> str:
    """
    Get server health metrics and status.

    Returns formatted health report showing:
    - Status (HEALTHY/DEGRADED/UNHEALTHY)
    - Process memory usage
    - System memory percentage
    - Style cache metrics (entries, capacity, hits, misses)
    - Conversion counters (completed, failed, images, placeholders)
    - Active alerts (if any)

    Returns:
        Formatted multi-line string with health metrics
    """
    from ..monitoring import health_monitor

    metrics = health_monitor.check_health()
    cache = metrics["style_cache"]
    conversions = metrics["conversions"]

    lines = [
        f"Server Health: {metrics['status'].upper()}",
        "",
        f"Process Memory: {metrics['process_memory_mb']:.1f} MB",
        f"System Memory: {metrics['system_memory_percent']:.1f}%",
        "",
        "Style Cache:",
        f"  Entries: {cache['entries']} / {cache['max_entries']}",
        f"  Hits: {cache['hits']}",
        f"  Misses: {cache['misses']}",
        "",
        "Conversions:",
        f"  Completed: {conversions['completed']}",
        f"  Failed: {conversions['failed']}",
        f"  Images resolved: {conversions['images']}",
        f"  Image placeholders: {conversions['placeholders']}",
    ]

    if metrics['alerts']:
        lines.append("")
        lines.append("Alerts:")
        for alert in metrics['alerts']:
            lines.append(f"  - {alert}")

    return "\n".join(lines)
