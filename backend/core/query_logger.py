# backend/core/query_logger.py

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.engine import Engine

from core.config import get_settings

logger = logging.getLogger("sqlalchemy.engine")
query_logger = logging.getLogger("query_performance")

settings = get_settings()


class QueryLogger:
    """SQL query timing for development and debugging"""

    def __init__(self, slow_query_threshold: float = 1.0):
        self.enabled = settings.is_development or settings.debug or settings.log_sql_queries
        self.slow_query_threshold = slow_query_threshold
        self.query_stats: Dict[str, Any] = {}
        self.reset_stats()

    def reset_stats(self):
        """Reset query statistics"""
        self.query_stats = {
            "total_queries": 0,
            "slow_queries": 0,
            "total_time": 0.0,
        }

    def record(self, statement: str, elapsed: float) -> None:
        self.query_stats["total_queries"] += 1
        self.query_stats["total_time"] += elapsed

        if elapsed > self.slow_query_threshold:
            self.query_stats["slow_queries"] += 1
            query_logger.warning("SLOW QUERY (%.3fs): %s...", elapsed, statement[:200])

        if settings.log_sql_queries:
            logger.debug("Query Complete in %.3fs", elapsed)


# Singleton instance
query_logger_instance = QueryLogger()


def setup_query_logging(engine: Engine):
    """
    Attach timing listeners to an SQLAlchemy engine.

    Args:
        engine: SQLAlchemy engine instance
    """
    if not query_logger_instance.enabled:
        return

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

        if settings.log_sql_queries:
            logger.debug("Start Query: %s", statement)

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        started = conn.info["query_start_time"].pop(-1)
        query_logger_instance.record(statement, time.time() - started)


@contextmanager
def log_query_performance(operation_name: str):
    """
    Log the number of queries and elapsed time of a database operation.

    Example:
        with log_query_performance("refresh_segment"):
            service.refresh_segment(segment_id)
    """
    if not query_logger_instance.enabled:
        yield
        return

    start_queries = query_logger_instance.query_stats["total_queries"]
    start_time = time.time()

    try:
        yield
    finally:
        elapsed_time = time.time() - start_time
        query_count = query_logger_instance.query_stats["total_queries"] - start_queries
        query_logger.info(
            "Operation '%s': %d queries in %.3fs", operation_name, query_count, elapsed_time
        )
