"""Degradation tracking for analysis runs.

Pipeline stages never raise on external-call failures; they fall back to a
safe default instead. WarningsCollector records those fallbacks so a caller
can tell a clean run from a degraded one. The collected warnings are returned
in SentimentSnapshot.warnings.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# Supported warning types
WARNING_TYPE_NO_SOURCES_FOUND = "no_sources_found"
WARNING_TYPE_RELEVANCE_BATCH_KEPT = "relevance_batch_kept"
WARNING_TYPE_COMMENT_FALLBACK_USED = "comment_fallback_used"
WARNING_TYPE_TOPIC_CLUSTERING_EMPTY = "topic_clustering_empty"
WARNING_TYPE_RECOMMENDATION_DROPPED = "recommendation_dropped"
WARNING_TYPE_ANALYSIS_FAILED = "analysis_failed"

VALID_WARNING_TYPES = {
    WARNING_TYPE_NO_SOURCES_FOUND,
    WARNING_TYPE_RELEVANCE_BATCH_KEPT,
    WARNING_TYPE_COMMENT_FALLBACK_USED,
    WARNING_TYPE_TOPIC_CLUSTERING_EMPTY,
    WARNING_TYPE_RECOMMENDATION_DROPPED,
    WARNING_TYPE_ANALYSIS_FAILED,
}


class WarningsCollector:
    """Collector for non-fatal warnings during one analysis run.

    All pipeline work runs on a single event loop, so appends never race and
    no lock is taken.

    Example:
        >>> collector = WarningsCollector()
        >>> collector.append(
        ...     "relevance_batch_kept",
        ...     "Relevance classification failed; batch kept unfiltered",
        ...     {"batch_size": 10}
        ... )
        >>> len(collector)
        1
    """

    def __init__(self):
        self._warnings: List[Dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._warnings)

    def append(self, warning_type: str, message: str, context: Dict[str, Any]) -> None:
        """Add a warning with type, message, ISO 8601 UTC timestamp and context.

        Raises:
            ValueError: If warning_type is not in VALID_WARNING_TYPES
        """
        if warning_type not in VALID_WARNING_TYPES:
            raise ValueError(
                f"Invalid warning_type '{warning_type}'. "
                f"Must be one of: {', '.join(sorted(VALID_WARNING_TYPES))}"
            )

        self._warnings.append({
            "type": warning_type,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "context": context,
        })

    def types(self) -> List[str]:
        return [w["type"] for w in self._warnings]

    def to_list(self) -> List[Dict[str, Any]]:
        """Return a copy of the collected warnings."""
        return [dict(w) for w in self._warnings]

    def to_json(self) -> Optional[str]:
        """Serialize warnings to a JSON array string, or None if empty."""
        if not self._warnings:
            return None
        return json.dumps(self._warnings)
