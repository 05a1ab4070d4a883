import datetime
from functools import cmp_to_key

from .models import Priority, Status

STATUS_ALL = "ALL"


def _parse_date(value):
    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def matches_search(ticket, term):
    term = (term or "").lower()
    if not term:
        return True
    return (
        term in (ticket.issue or "").lower()
        or term in (ticket.company or "").lower()
        or term in (ticket.pic or "").lower()
    )


def matches_status(ticket, status_filter):
    return not status_filter or status_filter == STATUS_ALL or ticket.status == status_filter


def compare_tickets(a, b):
    """Urgent tickets before non-HIGH ones, otherwise newest date first.

    Pairwise only: an urgent ticket is not ordered against a HIGH one that is
    already done except by date. Unparseable dates compare equal.
    """
    if a.is_urgent and b.priority != Priority.HIGH.value:
        return -1
    if b.is_urgent and a.priority != Priority.HIGH.value:
        return 1
    date_a, date_b = _parse_date(a.date), _parse_date(b.date)
    if date_a is None or date_b is None or date_a == date_b:
        return 0
    return -1 if date_a > date_b else 1


def urgency_sort_key(ticket):
    parsed = _parse_date(ticket.date)
    ordinal = parsed.toordinal() if parsed else 0
    return (0 if ticket.is_urgent else 1, -ordinal)


def filter_tickets(tickets, search="", status_filter=STATUS_ALL, strict_order=False):
    visible = [
        t for t in tickets
        if matches_search(t, search) and matches_status(t, status_filter)
    ]
    if strict_order:
        return sorted(visible, key=urgency_sort_key)
    return sorted(visible, key=cmp_to_key(compare_tickets))


def ticket_stats(tickets):
    return {
        "total": len(tickets),
        "pending": sum(1 for t in tickets if t.status == Status.PENDING.value),
        "process": sum(1 for t in tickets if t.status == Status.PROCESS.value),
        "done": sum(1 for t in tickets if t.status == Status.DONE.value),
    }
