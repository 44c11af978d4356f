"""Status source registry — pluggable origin of live order status events.

Uses the simulated source by default. Configure via STOREFRONT_FEED_SOURCE:
"simulated", "push" (in-process queue fed by a push handler) or "sse"
(server-sent events from STOREFRONT_PUSH_URL).
"""

import os

_source_instance = None


def get_status_source():
    """Return the configured status event source (singleton)."""
    global _source_instance
    if _source_instance is None:
        source = os.environ.get("STOREFRONT_FEED_SOURCE", "simulated")
        if source == "simulated":
            from storefront.feed.sources.simulated_source import SimulatedStatusSource

            _source_instance = SimulatedStatusSource()
        elif source == "push":
            from storefront.feed.sources.queue_source import QueueStatusSource

            _source_instance = QueueStatusSource()
        elif source == "sse":
            from storefront.feed.sources.sse_source import SseStatusSource

            _source_instance = SseStatusSource(base_url=os.environ.get("STOREFRONT_PUSH_URL"))
        else:
            raise ValueError(f"Unknown status source: {source}")
    return _source_instance


def reset_status_source():
    """Reset the status source singleton (useful for testing)."""
    global _source_instance
    _source_instance = None
