import datetime
import enum
from dataclasses import dataclass, field
from typing import Optional

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class Status(str, enum.Enum):
    PENDING = "PENDING"
    PROCESS = "PROCESS"
    DONE = "DONE"


class Priority(str, enum.Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"


class TicketType(str, enum.Enum):
    HW = "HW"
    SW = "SW"


STATUS_LABELS = {
    Status.PENDING.value: "Belum Dikerjakan",
    Status.PROCESS.value: "Sedang Proses",
    Status.DONE.value: "Selesai",
}

TYPE_LABELS = {
    TicketType.HW.value: "Hardware",
    TicketType.SW.value: "Software",
}

COMPANIES = (
    "PT Padma Jarka Abadi",
    "PT Sembilan Matahari Sakti",
    "PT Semesta Mataram Sakti",
    "PT Sumber Santoso Abadi",
)

TECHNICIANS = (
    "GILANG PERMANA",
    "FERI SAT QOMARUDDIN",
    "ARDIAN BEKTI PRASETYO",
    "PAUPAULINA ALDRIANTO",
    "NURUL INAYAH",
)


@dataclass
class Ticket:
    id: str
    date: str
    company: str
    pic: str
    issue: str
    type: str = TicketType.HW.value
    status: str = Status.PENDING.value
    priority: str = Priority.NORMAL.value
    photo_url: Optional[str] = None
    notes: Optional[str] = field(default=None, repr=False)

    @property
    def is_urgent(self):
        return self.priority == Priority.HIGH.value and self.status != Status.DONE.value

    @property
    def status_label(self):
        return STATUS_LABELS.get(self.status, self.status)

    @property
    def type_label(self):
        return TYPE_LABELS.get(self.type, self.type)

    def to_dict(self):
        data = {
            "id": self.id,
            "date": self.date,
            "company": self.company,
            "pic": self.pic,
            "issue": self.issue,
            "type": self.type,
            "status": self.status,
            "priority": self.priority,
        }
        if self.photo_url:
            data["photoUrl"] = self.photo_url
        if self.notes:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data):
        # Stored records are trusted as written; enumerations are only checked on input.
        return cls(
            id=str(data.get("id", "")),
            date=data.get("date", ""),
            company=data.get("company", ""),
            pic=data.get("pic", ""),
            issue=data.get("issue", ""),
            type=data.get("type", TicketType.HW.value),
            status=data.get("status", Status.PENDING.value),
            priority=data.get("priority", Priority.NORMAL.value),
            photo_url=data.get("photoUrl"),
            notes=data.get("notes"),
        )


def default_tickets(today=None):
    today = today or datetime.date.today()

    def days_ago(n):
        return (today - datetime.timedelta(days=n)).isoformat()

    return [
        Ticket(
            id="1",
            date=days_ago(0),
            company=COMPANIES[0],
            pic=TECHNICIANS[0],
            issue="PC Admin Gudang Mati Total (PSU)",
            type=TicketType.HW.value,
            status=Status.PENDING.value,
            priority=Priority.HIGH.value,
            photo_url="https://picsum.photos/200/200?random=1",
        ),
        Ticket(
            id="2",
            date=days_ago(1),
            company=COMPANIES[1],
            pic=TECHNICIANS[1],
            issue="Install Ulang Accurate Server",
            type=TicketType.SW.value,
            status=Status.PROCESS.value,
            priority=Priority.NORMAL.value,
            photo_url="https://picsum.photos/200/200?random=2",
        ),
        Ticket(
            id="3",
            date=days_ago(2),
            company=COMPANIES[2],
            pic=TECHNICIANS[2],
            issue="Printer Epson L3110 Paper Jam",
            type=TicketType.HW.value,
            status=Status.DONE.value,
            priority=Priority.NORMAL.value,
            photo_url="https://picsum.photos/200/200?random=3",
        ),
    ]


class StoredValue(db.Model):
    __tablename__ = "stored_values"
    key = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.LargeBinary, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.datetime.utcnow,
        onupdate=datetime.datetime.utcnow,
    )
