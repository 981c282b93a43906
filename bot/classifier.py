"""Sort tickets into due-date buckets."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Collection, Iterator, Sequence

from bot.models import Ticket

logger = logging.getLogger("bot.classifier")

FRIDAY = 4
HANDOFF_QUEUE_SIZE = 10

_CLOSED = object()


class _ProducerFailure:
    def __init__(self, exc: BaseException) -> None:
        self.exc = exc


@dataclass(frozen=True)
class Classification:
    expired: tuple[Ticket, ...]
    due_soon: tuple[Ticket, ...]
    unscheduled: tuple[Ticket, ...] = ()


def week_boundary(today: date) -> date:
    """Return the coming Friday, always strictly after *today*."""
    days_ahead = (FRIDAY - today.weekday()) % 7 or 7
    return today + timedelta(days=days_ahead)


def is_expired(ticket: Ticket, today: date) -> bool:
    return ticket.due_date is not None and ticket.due_date < today


def is_due_soon(ticket: Ticket, today: date, boundary: date) -> bool:
    return ticket.due_date is not None and today <= ticket.due_date < boundary


def filter_tickets(
    tickets: Sequence[Ticket],
    project_id: int | None = None,
    finished_statuses: Collection[int] = (),
) -> list[Ticket]:
    """Keep tickets of *project_id* whose status is not finished.

    Either filter is skipped when its argument is empty.
    """
    kept = []
    for ticket in tickets:
        if project_id is not None and ticket.project_id != project_id:
            continue
        if ticket.status_id in finished_statuses:
            continue
        kept.append(ticket)
    logger.info("Kept %d of %d tickets after project/status filtering", len(kept), len(tickets))
    return kept


# ---------------------------------------------------------------------------
# Fan-out: one producer thread and one bounded queue per predicate
# ---------------------------------------------------------------------------


def _produce(tickets: tuple[Ticket, ...], predicate: Callable[[Ticket], bool], out: queue.Queue) -> None:
    try:
        for ticket in tickets:
            if predicate(ticket):
                out.put(ticket)
    except Exception as exc:
        logger.error("Fan-out producer failed: %s", exc)
        out.put(_ProducerFailure(exc))
        return
    out.put(_CLOSED)


def fanout(
    tickets: Sequence[Ticket],
    *predicates: Callable[[Ticket], bool],
    maxsize: int = HANDOFF_QUEUE_SIZE,
) -> list[queue.Queue]:
    """Filter *tickets* concurrently, one queue per predicate.

    Each queue receives the matching tickets in their original order and is
    closed with a sentinel once its producer is done; read it with ``drain``.
    """
    shared = tuple(tickets)
    queues: list[queue.Queue] = []
    for predicate in predicates:
        out: queue.Queue = queue.Queue(maxsize=maxsize)
        threading.Thread(target=_produce, args=(shared, predicate, out), daemon=True).start()
        queues.append(out)
    return queues


def drain(q: queue.Queue) -> Iterator[Ticket]:
    """Yield tickets from a fan-out queue until it is closed.

    Re-raises any exception raised by the queue's producer.
    """
    while True:
        item = q.get()
        if item is _CLOSED:
            return
        if isinstance(item, _ProducerFailure):
            raise item.exc
        yield item


def classify(tickets: Sequence[Ticket], today: date, boundary: date) -> Classification:
    """Split *tickets* into expired, due-soon, and unscheduled buckets.

    Tickets without a due date land only in ``unscheduled``. Buckets keep the
    input order.
    """
    expired_q, due_soon_q = fanout(
        tickets,
        lambda t: is_expired(t, today),
        lambda t: is_due_soon(t, today, boundary),
    )
    expired = tuple(drain(expired_q))
    due_soon = tuple(drain(due_soon_q))
    unscheduled = tuple(t for t in tickets if t.due_date is None)

    logger.info(
        "Classified %d tickets: %d expired, %d due before %s, %d without due date",
        len(tickets), len(expired), len(due_soon), boundary.isoformat(), len(unscheduled),
    )
    return Classification(expired=expired, due_soon=due_soon, unscheduled=unscheduled)
