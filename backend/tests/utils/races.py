"""Helpers that let a competing writer win a race against the code under test."""
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import event, insert
from sqlalchemy.orm import Session

from subscriptions.models.usage import Usage


@contextmanager
def competing_usage_insert(target: Any = Session, times: int = 1) -> Iterator[list]:
    """
    Insert a usage counter for the same key right before a session flushes a new one.

    This reproduces another writer creating the counter after the locked read
    found nothing, so the flush hits the unique constraint. Only the first
    ``times`` flushes that create a counter are raced.

    Args:
        target: Session instance or class to listen on
        times: How many flushes to race

    Yields:
        list: (subscription_id, resource_type_id) of every raced flush
    """
    raced: list = []

    def before_flush(session, flush_context, instances) -> None:
        if len(raced) >= times:
            return
        for obj in list(session.new):
            if isinstance(obj, Usage):
                session.connection().execute(
                    insert(Usage.__table__).values(
                        subscription_id=obj.subscription_id,
                        resource_type_id=obj.resource_type_id,
                        usage_value=0.0,
                        created_by="competitor",
                        last_modified_by="competitor",
                    )
                )
                raced.append((obj.subscription_id, obj.resource_type_id))
                return

    event.listen(target, "before_flush", before_flush)
    try:
        yield raced
    finally:
        event.remove(target, "before_flush", before_flush)
