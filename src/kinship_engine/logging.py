"""Structured logging for the kinship engine.

Every module logs through ``get_logger(__name__)``; events are snake_case
names with keyword context, rendered as one JSON line on stderr:

    graph_built                  people and edges in a new RelationshipGraph
    unknown_relation_type        a fact with a relation token no rule knows
    path_not_found               BFS exhausted or hit max_depth
    ancestor_cycle_pruned        a parent already on the current branch
    ancestor_cache_refreshed     rows written for one person
    ancestor_cache_miss          get_cached computed instead of reading (debug)
    background_refresh_failed    a scheduled refresh raised
    store_read_retry             StoreUnavailable, about to retry
    relatives_matched            candidates returned for a subject
    connection_request_created
    connection_request_responded

The CLI calls ``configure_logging`` with ``--log-level`` or KINSHIP_LOG_LEVEL.
"""
from __future__ import annotations

from typing import Literal

import logging
import structlog

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: LogLevel = "INFO") -> None:
    numeric = getattr(logging, level)
    logging.basicConfig(format="%(message)s", level=numeric)
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(numeric)
    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "kinship_engine"):
    """Logger for a kinship_engine module, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


configure_logging()
