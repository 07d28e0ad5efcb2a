"""Tests for the Supabase retry helper."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from agentflow.utils.retry import retry_supabase_query


class TestRetrySupabaseQuery:
    def test_returns_first_success(self):
        query = MagicMock(return_value="rows")
        assert retry_supabase_query(query, sleep=lambda _: None) == "rows"
        assert query.call_count == 1

    def test_retries_connection_reset(self):
        query = MagicMock(side_effect=[ConnectionResetError("Connection reset by peer"), "rows"])
        delays = []
        assert retry_supabase_query(query, sleep=delays.append) == "rows"
        assert delays == [0.5]

    def test_gives_up_after_max_retries(self):
        query = MagicMock(side_effect=OSError("[Errno 104] Connection reset by peer"))
        delays = []
        with pytest.raises(OSError):
            retry_supabase_query(query, max_retries=2, sleep=delays.append)
        assert query.call_count == 3
        assert delays == [0.5, 1.0]

    def test_other_errors_raise_immediately(self):
        query = MagicMock(side_effect=ValueError("bad filter"))
        with pytest.raises(ValueError):
            retry_supabase_query(query, sleep=lambda _: None)
        assert query.call_count == 1
