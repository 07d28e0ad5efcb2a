"""
Retry utility for handling transient database connection errors.
Supabase occasionally drops pooled connections ("Connection reset by peer").
"""
import time
import logging
from typing import Callable, Any

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 0.5
MAX_DELAY_SECONDS = 4.0


def _is_connection_reset(error: Exception) -> bool:
    message = str(error).lower()
    return "connection reset" in message or "errno 104" in message


def retry_supabase_query(query_func: Callable, max_retries: int = 3, sleep: Callable[[float], None] = time.sleep) -> Any:
    """
    Execute a Supabase query with retry logic for transient errors.

    Usage:
        result = retry_supabase_query(
            lambda: client.table("agents").select("*").execute()
        )

    Args:
        query_func: A callable that executes the Supabase query
        max_retries: Maximum number of retry attempts
        sleep: Delay function, replaceable in tests

    Returns:
        The query result
    """
    for attempt in range(max_retries + 1):
        try:
            return query_func()
        except Exception as e:
            if not _is_connection_reset(e) or attempt >= max_retries:
                raise
            delay = min(BASE_DELAY_SECONDS * (2 ** attempt), MAX_DELAY_SECONDS)
            logger.warning(
                f"Supabase connection reset, retry {attempt + 1}/{max_retries}. "
                f"Waiting {delay}s..."
            )
            sleep(delay)
