"""
Service wiring: configuration → store → reconciler.

The HTTP surface, event bus and controller that deliver snapshots live
outside this package; they call ``build_snapshot_reconciler()`` once at
startup and then ``reconciler.reconcile(snapshot)`` per delivery.
"""

import logging
from typing import Optional

from .config import InventoryConfig, configure_logging
from .reconcile import SnapshotReconciler
from .store import InMemoryStoreClient, PostgresStoreClient, StoreClient

logger = logging.getLogger(__name__)


def create_store(config: InventoryConfig) -> StoreClient:
    """
    Create the store client selected by ``config.store_backend``.

    The Postgres backend has its table created if missing.
    """
    if config.store_backend == "memory":
        logger.info("Using in-memory store")
        return InMemoryStoreClient()

    store = PostgresStoreClient(
        db_url=config.db_url,
        host=config.db_host,
        port=config.db_port,
        database=config.db_name,
        user=config.db_user,
        password=config.db_password,
        minconn=config.pool_min,
        maxconn=config.pool_max,
    )
    store.ensure_schema()
    logger.info("Postgres store initialized")
    return store


def build_snapshot_reconciler(
    config: Optional[InventoryConfig] = None,
    store: Optional[StoreClient] = None
) -> SnapshotReconciler:
    """
    Build a ready-to-use SnapshotReconciler.

    Args:
        config: Service configuration (default: read from the environment)
        store: Store to use instead of the one ``config`` selects
    """
    config = config or InventoryConfig.from_env()
    configure_logging(config.log_level)
    if config.debug:
        logger.debug("Debug logging enabled")

    store = store or create_store(config)
    return SnapshotReconciler(store)
