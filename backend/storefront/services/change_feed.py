# Overview: Change notifications between back-office views; durable markers plus in-process signals.

"""
Change Feed

Every successful mutation calls notify_change() with the topics it touches.
Two things happen, in this order:

1. A ChangeMarker row per topic is stamped with the current time. Any view,
   in any tab or process, can poll changes_since() to learn it is stale.
2. The matching blinker signal is sent to every receiver connected in this
   process (synchronous, once per mutation, no retry).

Topics:
- inventory-updated: inventory rows were created, edited or deleted
- dashboard-data-updated: anything the admin dashboard aggregates changed
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from blinker import Namespace
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import ChangeMarker
from storefront.time_utils import utcnow

logger = logging.getLogger(__name__)

INVENTORY_UPDATED = "inventory-updated"
DASHBOARD_DATA_UPDATED = "dashboard-data-updated"
TOPICS = (INVENTORY_UPDATED, DASHBOARD_DATA_UPDATED)

_signals = Namespace()
inventory_updated = _signals.signal(INVENTORY_UPDATED)
dashboard_data_updated = _signals.signal(DASHBOARD_DATA_UPDATED)


def subscribe(topic: str, receiver: Callable) -> Callable:
    """Connect a receiver for the lifetime of the process."""
    if topic not in TOPICS:
        raise ValueError(f"Unknown change topic: {topic}")
    _signals.signal(topic).connect(receiver, weak=False)
    return receiver


def unsubscribe(topic: str, receiver: Callable) -> None:
    _signals.signal(topic).disconnect(receiver)


def _stamp_markers(topics: tuple[str, ...], now: datetime) -> None:
    for topic in topics:
        marker = db.session.get(ChangeMarker, topic)
        if marker is None:
            db.session.add(ChangeMarker(key=topic, changed_at=now))
        else:
            marker.changed_at = now
    db.session.commit()


def notify_change(*topics: str, source: str, entity_id: int | None = None) -> datetime:
    """
    Stamp the change markers for topics and signal in-process listeners.

    Must be called after the mutation has been committed; the marker write
    is committed on its own. A failed marker write is logged and the
    signals are still sent.
    """
    for topic in topics:
        if topic not in TOPICS:
            raise ValueError(f"Unknown change topic: {topic}")

    now = utcnow()
    try:
        _stamp_markers(topics, now)
    except SQLAlchemyError:
        # Mutation is already committed; a lost marker only delays pollers.
        db.session.rollback()
        logger.exception(
            "change_marker_write_failed",
            extra={"topics": list(topics), "source": source, "entity_id": entity_id},
        )

    for topic in topics:
        try:
            _signals.signal(topic).send(source, changed_at=now, entity_id=entity_id)
        except Exception:
            # Mutation is already committed; receiver failures are logged only.
            logger.exception(
                "change_signal_receiver_failed",
                extra={"topic": topic, "source": source, "entity_id": entity_id},
            )

    logger.info(
        "change_notified",
        extra={"topics": list(topics), "source": source, "entity_id": entity_id},
    )
    return now


def get_markers() -> dict[str, ChangeMarker]:
    markers = db.session.query(ChangeMarker).all()
    return {m.key: m for m in markers}


def changes_since(since: datetime | None) -> list[ChangeMarker]:
    """Markers stamped strictly after since (all markers when since is None)."""
    query = db.session.query(ChangeMarker)
    if since is not None:
        query = query.filter(ChangeMarker.changed_at > since)
    return query.order_by(ChangeMarker.key.asc()).all()
