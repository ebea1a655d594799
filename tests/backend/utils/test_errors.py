"""Unit Tests for WarningsCollector

1. Initializes empty; to_json() returns None
2. append() records type, message, ISO 8601 UTC timestamp and context
3. Invalid warning types are rejected
4. Every supported type is accepted
5. to_list() returns copies
"""

import json
from datetime import datetime

import pytest

from brandpulse.backend.utils.errors import (
    VALID_WARNING_TYPES,
    WARNING_TYPE_COMMENT_FALLBACK_USED,
    WARNING_TYPE_RELEVANCE_BATCH_KEPT,
    WarningsCollector,
)


class TestWarningsCollector:
    """Test suite for WarningsCollector"""

    def test_initializes_empty(self):
        collector = WarningsCollector()

        assert len(collector) == 0
        assert collector.to_json() is None
        assert collector.to_list() == []

    def test_append_records_all_fields(self):
        collector = WarningsCollector()

        collector.append(WARNING_TYPE_RELEVANCE_BATCH_KEPT, "Batch kept", {"batch_size": 10})

        warning = collector.to_list()[0]
        assert warning["type"] == "relevance_batch_kept"
        assert warning["message"] == "Batch kept"
        assert warning["context"] == {"batch_size": 10}
        assert datetime.fromisoformat(warning["timestamp"]).tzinfo is not None

    def test_to_json_round_trips(self):
        collector = WarningsCollector()
        collector.append(WARNING_TYPE_RELEVANCE_BATCH_KEPT, "first", {})
        collector.append(WARNING_TYPE_COMMENT_FALLBACK_USED, "second", {"post_count": 3})

        parsed = json.loads(collector.to_json())

        assert [w["type"] for w in parsed] == ["relevance_batch_kept", "comment_fallback_used"]
        assert collector.types() == ["relevance_batch_kept", "comment_fallback_used"]

    def test_invalid_type_rejected(self):
        collector = WarningsCollector()

        with pytest.raises(ValueError, match="Invalid warning_type"):
            collector.append("schwab_unavailable", "nope", {})
        assert len(collector) == 0

    @pytest.mark.parametrize("warning_type", sorted(VALID_WARNING_TYPES))
    def test_all_supported_types(self, warning_type):
        collector = WarningsCollector()

        collector.append(warning_type, "msg", {})

        assert collector.types() == [warning_type]

    def test_to_list_returns_copies(self):
        collector = WarningsCollector()
        collector.append(WARNING_TYPE_RELEVANCE_BATCH_KEPT, "msg", {})

        collector.to_list()[0]["type"] = "changed"

        assert collector.types() == ["relevance_batch_kept"]
