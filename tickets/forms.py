import datetime
import logging
import re
import time
from dataclasses import dataclass, fields
from typing import Optional

from .models import COMPANIES, TECHNICIANS, Priority, Status, Ticket, TicketType

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
DATE_FORMAT_MESSAGE = "Format tanggal harus YYYY-MM-DD."

REQUIRED_FIELDS_MESSAGE = (
    "Mohon maaf rekan, data Tanggal, Perusahaan, PIC, dan Kendala wajib diisi agar laporan rapi."
)
PHOTO_CONFIRM_MESSAGE = (
    "Anda belum menyertakan Bukti Foto. Apakah Anda yakin ingin menyimpan tanpa foto? "
    "(Disarankan pakai foto agar tidak ditegur admin)"
)
DELETE_CONFIRM_MESSAGE = "Yakin ingin menghapus laporan ini?"

FORM_FIELDS = {
    "date": "date",
    "company": "company",
    "pic": "pic",
    "issue": "issue",
    "type": "type",
    "status": "status",
    "priority": "priority",
    "photoUrl": "photo_url",
    "notes": "notes",
}


class ValidationError(ValueError):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


def _blank(value):
    return value is None or not str(value).strip()


@dataclass
class TicketDraft:
    date: Optional[str] = None
    company: Optional[str] = None
    pic: Optional[str] = None
    issue: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    photo_url: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def for_new(cls, today=None):
        today = today or datetime.date.today()
        return cls(
            date=today.isoformat(),
            type=TicketType.HW.value,
            status=Status.PENDING.value,
            priority=Priority.NORMAL.value,
        )

    @classmethod
    def from_ticket(cls, ticket):
        return cls(**{f.name: getattr(ticket, f.name) for f in fields(cls)})

    @classmethod
    def from_form(cls, form, base=None):
        """Overlay submitted form values on ``base`` (or an empty draft)."""
        values = {f.name: getattr(base, f.name) for f in fields(cls)} if base else {}
        for form_key, attr in FORM_FIELDS.items():
            if form_key in form:
                value = form.get(form_key)
                values[attr] = value.strip() if isinstance(value, str) else value
        return cls(**values)

    def validate(self):
        if any(_blank(v) for v in (self.date, self.company, self.pic, self.issue)):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        if not DATE_PATTERN.fullmatch(self.date):
            raise ValidationError(DATE_FORMAT_MESSAGE)
        try:
            datetime.date.fromisoformat(self.date)
        except ValueError:
            raise ValidationError(DATE_FORMAT_MESSAGE)
        if self.company not in COMPANIES:
            raise ValidationError(f"Perusahaan tidak dikenal: {self.company}")
        if self.pic not in TECHNICIANS:
            raise ValidationError(f"Teknisi tidak dikenal: {self.pic}")
        choices = (
            (self.type, TicketType, "Tipe"),
            (self.status, Status, "Status"),
            (self.priority, Priority, "Prioritas"),
        )
        for value, enum_cls, label in choices:
            if not _blank(value) and value not in {m.value for m in enum_cls}:
                raise ValidationError(f"{label} tidak valid: {value}")

    def finalize(self, existing=None, new_id=None):
        self.validate()
        ticket_id = existing.id if existing else new_id
        if not ticket_id:
            raise ValueError("new_id is required when creating a ticket")
        return Ticket(
            id=ticket_id,
            date=self.date,
            company=self.company,
            pic=self.pic,
            issue=self.issue.strip(),
            type=self.type or TicketType.HW.value,
            status=self.status or Status.PENDING.value,
            priority=self.priority or Priority.NORMAL.value,
            photo_url=self.photo_url or None,
            notes=self.notes or None,
        )


class TicketLifecycle:
    def __init__(self, store, clock=time.time):
        self.store = store
        self.clock = clock

    def new_id(self):
        taken = {t.id for t in self.store.read_all()}
        candidate = int(self.clock() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def save(self, draft, existing=None, confirm=None):
        """Validate and persist ``draft``.

        Returns the saved ticket, or None when the user declined to save a
        new ticket without a photo. Raises ValidationError on bad input.
        """
        draft.validate()
        if existing is None and not draft.photo_url:
            if confirm is None or not confirm(PHOTO_CONFIRM_MESSAGE):
                return None

        ticket = draft.finalize(existing=existing, new_id=None if existing else self.new_id())
        self.store.upsert(ticket)
        logger.info("%s ticket %s", "Updated" if existing else "Created", ticket.id)
        return ticket

    def delete(self, ticket_id, confirmed=False):
        if not confirmed:
            return False
        self.store.delete(ticket_id)
        logger.info("Deleted ticket %s", ticket_id)
        return True
