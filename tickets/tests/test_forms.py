import datetime
import unittest
from unittest import mock

from tickets.forms import (
    DATE_FORMAT_MESSAGE,
    PHOTO_CONFIRM_MESSAGE,
    REQUIRED_FIELDS_MESSAGE,
    TicketDraft,
    TicketLifecycle,
    ValidationError,
)
from tickets.models import COMPANIES, TECHNICIANS
from tickets.storage import MemoryBackend, TicketStore


class TicketDraftTestCase(unittest.TestCase):
    def setUp(self):
        self.sample_payload = {
            "date": "2025-01-01",
            "company": COMPANIES[0],
            "pic": TECHNICIANS[0],
            "issue": "Monitor berkedip",
            "type": "HW",
            "status": "PENDING",
            "priority": "HIGH",
        }

    def test_new_draft_defaults(self):
        draft = TicketDraft.for_new(today=datetime.date(2025, 5, 17))
        self.assertEqual(draft.date, "2025-05-17")
        self.assertEqual((draft.status, draft.priority, draft.type), ("PENDING", "NORMAL", "HW"))
        self.assertIsNone(draft.company)

    def test_missing_required_field_fails(self):
        for field in ("date", "company", "pic", "issue"):
            payload = dict(self.sample_payload, **{field: "  "})
            with self.assertRaises(ValidationError) as ctx:
                TicketDraft.from_form(payload).finalize(new_id="10")
            self.assertEqual(ctx.exception.message, REQUIRED_FIELDS_MESSAGE)

    def test_company_and_pic_must_be_known(self):
        with self.assertRaises(ValidationError):
            TicketDraft.from_form(dict(self.sample_payload, company="PT Lain")).validate()
        with self.assertRaises(ValidationError):
            TicketDraft.from_form(dict(self.sample_payload, pic="BUDI")).validate()

    def test_malformed_date_fails(self):
        with self.assertRaises(ValidationError):
            TicketDraft.from_form(dict(self.sample_payload, date="01/02/2025")).validate()

    def test_only_calendar_dates_are_accepted(self):
        for value in ("20250101", "2025-W01-1", "2025-001", "2025-02-30", "2025-1-1"):
            with self.assertRaises(ValidationError) as ctx:
                TicketDraft.from_form(dict(self.sample_payload, date=value)).finalize(new_id="1")
            self.assertEqual(ctx.exception.message, DATE_FORMAT_MESSAGE)

        ticket = TicketDraft.from_form(self.sample_payload).finalize(new_id="1")
        self.assertEqual(ticket.date, "2025-01-01")

    def test_unknown_status_fails(self):
        with self.assertRaises(ValidationError):
            TicketDraft.from_form(dict(self.sample_payload, status="CLOSED")).validate()

    def test_finalize_fills_defaults_for_blank_choices(self):
        payload = dict(self.sample_payload, type="", status="", priority="")
        ticket = TicketDraft.from_form(payload).finalize(new_id="10")
        self.assertEqual((ticket.type, ticket.status, ticket.priority), ("HW", "PENDING", "NORMAL"))

    def test_finalize_keeps_existing_id(self):
        existing = TicketDraft.from_form(self.sample_payload).finalize(new_id="42")
        draft = TicketDraft.from_form({"status": "DONE"}, base=TicketDraft.from_ticket(existing))
        ticket = draft.finalize(existing=existing, new_id="99")
        self.assertEqual(ticket.id, "42")
        self.assertEqual(ticket.status, "DONE")
        self.assertEqual(ticket.issue, "Monitor berkedip")


class TicketLifecycleTestCase(unittest.TestCase):
    def setUp(self):
        self.backend = MemoryBackend()
        self.store = TicketStore(self.backend)
        self.store.read_all()
        self.lifecycle = TicketLifecycle(self.store, clock=lambda: 1735689600.5)
        self.sample_payload = {
            "date": "2025-01-01",
            "company": COMPANIES[3],
            "pic": TECHNICIANS[4],
            "issue": "Email tidak bisa kirim",
            "type": "SW",
        }

    def test_create_with_photo_saves_without_asking(self):
        confirm = mock.Mock()
        draft = TicketDraft.from_form(dict(self.sample_payload, photoUrl="/uploads/bukti.jpg"))

        ticket = self.lifecycle.save(draft, confirm=confirm)

        confirm.assert_not_called()
        self.assertEqual(ticket.id, "1735689600500")
        self.assertEqual(self.store.read_all()[0], ticket)

    def test_create_without_photo_asks_and_can_be_declined(self):
        before = self.backend.data
        confirm = mock.Mock(return_value=False)

        result = self.lifecycle.save(TicketDraft.from_form(self.sample_payload), confirm=confirm)

        self.assertIsNone(result)
        confirm.assert_called_once_with(PHOTO_CONFIRM_MESSAGE)
        self.assertEqual(self.backend.data, before)

    def test_create_without_photo_and_no_prompt_aborts(self):
        self.assertIsNone(self.lifecycle.save(TicketDraft.from_form(self.sample_payload)))
        self.assertEqual(len(self.store.read_all()), 3)

    def test_create_without_photo_confirmed(self):
        ticket = self.lifecycle.save(TicketDraft.from_form(self.sample_payload), confirm=lambda message: True)
        self.assertEqual(len(self.store.read_all()), 4)
        self.assertIsNone(ticket.photo_url)

    def test_invalid_draft_does_not_touch_store(self):
        before = self.backend.data
        with self.assertRaises(ValidationError):
            self.lifecycle.save(TicketDraft.from_form(dict(self.sample_payload, company="")),
                                confirm=lambda message: True)
        self.assertEqual(self.backend.data, before)

    def test_edit_never_asks_for_photo(self):
        existing = self.store.get("2")
        existing.photo_url = None
        self.store.upsert(existing)
        confirm = mock.Mock()

        draft = TicketDraft.from_form({"status": "DONE"}, base=TicketDraft.from_ticket(existing))
        ticket = self.lifecycle.save(draft, existing=existing, confirm=confirm)

        confirm.assert_not_called()
        self.assertEqual(ticket.id, "2")
        self.assertEqual([t.id for t in self.store.read_all()], ["1", "2", "3"])
        self.assertEqual(self.store.get("2").status, "DONE")

    def test_new_id_skips_taken_ids(self):
        lifecycle = TicketLifecycle(self.store, clock=lambda: 0.001)
        self.assertEqual(lifecycle.new_id(), "4")

    def test_delete_requires_confirmation(self):
        self.assertFalse(self.lifecycle.delete("1"))
        self.assertIsNotNone(self.store.get("1"))

        self.assertTrue(self.lifecycle.delete("1", confirmed=True))
        self.assertIsNone(self.store.get("1"))
