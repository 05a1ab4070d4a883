"""Persistence for the ticket collection and the theme preference.

Every value lives under one key and is rewritten whole on each change.
Backends only move bytes; `TicketStore` owns the JSON layout.
"""
import json
import logging
import os

from .models import StoredValue, Ticket, db, default_tickets

logger = logging.getLogger(__name__)

TICKETS_KEY = "it_tickets_data"
THEME_KEY = "theme"

THEMES = ("light", "dark")


class MemoryBackend:
    def __init__(self, data=None):
        self.data = data

    def read(self):
        return self.data

    def write(self, data):
        self.data = data


class FileBackend:
    def __init__(self, path):
        self.path = path

    def read(self):
        if not os.path.exists(self.path):
            return None
        with open(self.path, "rb") as f:
            return f.read()

    def write(self, data):
        with open(self.path, "wb") as f:
            f.write(data)


class DatabaseBackend:
    """One row of the ``stored_values`` table. Needs an app context."""

    def __init__(self, key):
        self.key = key

    def read(self):
        row = StoredValue.query.filter_by(key=self.key).first()
        return row.value if row else None

    def write(self, data):
        row = StoredValue.query.filter_by(key=self.key).first()
        if row:
            row.value = data
        else:
            db.session.add(StoredValue(key=self.key, value=data))
        db.session.commit()


class TicketStore:
    def __init__(self, backend, seed_factory=default_tickets):
        self.backend = backend
        self.seed_factory = seed_factory

    def _load(self):
        raw = self.backend.read()
        if not raw:
            return None
        try:
            records = json.loads(raw)
        except ValueError as exc:
            logger.error("Stored ticket data is not valid JSON, reseeding: %s", exc)
            return None
        if not isinstance(records, list):
            logger.error("Stored ticket data is not a list, reseeding")
            return None
        return [Ticket.from_dict(item) for item in records if isinstance(item, dict)]

    def _save(self, tickets):
        payload = json.dumps([t.to_dict() for t in tickets], indent=2)
        self.backend.write(payload.encode("utf-8"))

    def read_all(self):
        tickets = self._load()
        if tickets is None:
            tickets = self.seed_factory()
            self._save(tickets)
            logger.info("Seeded %d default tickets", len(tickets))
        return tickets

    def get(self, ticket_id):
        for ticket in self.read_all():
            if ticket.id == ticket_id:
                return ticket
        return None

    def upsert(self, ticket):
        tickets = self.read_all()
        for index, existing in enumerate(tickets):
            if existing.id == ticket.id:
                tickets[index] = ticket
                break
        else:
            tickets.insert(0, ticket)
        self._save(tickets)

    def delete(self, ticket_id):
        tickets = self.read_all()
        remaining = [t for t in tickets if t.id != ticket_id]
        self._save(remaining)


class ThemePreference:
    def __init__(self, backend, default="light"):
        self.backend = backend
        self.default = default

    def get(self):
        raw = self.backend.read()
        theme = raw.decode("utf-8") if raw else ""
        return theme if theme in THEMES else self.default

    def set(self, theme):
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self.backend.write(theme.encode("utf-8"))

    def toggle(self):
        theme = "light" if self.get() == "dark" else "dark"
        self.set(theme)
        return theme
