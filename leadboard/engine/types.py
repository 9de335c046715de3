"""Value types shared by the resolver, the sync engine and the gateways.

All of them are frozen dataclasses: the engine replaces objects instead of
mutating them, so a view handed to a consumer stays valid until the next
recompute.
"""

import enum
from dataclasses import asdict, dataclass, field, replace
from typing import Optional


class StageColor(str, enum.Enum):
    """Palette tokens a stage may use. Rendering them is the UI's job."""

    BLUE = "blue"
    YELLOW = "yellow"
    GREEN = "green"
    PURPLE = "purple"
    GRAY = "gray"
    RED = "red"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Fields a caller may write on a lead (id and timestamps are server-owned).
LEAD_FIELDS = (
    "name",
    "email",
    "phone_number",
    "address",
    "notes",
    "status",
    "priority",
)


@dataclass(frozen=True)
class Lead:
    id: int
    name: str
    email: str
    phone_number: str = ""
    address: str = ""
    notes: str = ""
    status: Optional[str] = None
    priority: Optional[Priority] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, row):
        """Build a Lead from a store row, normalising nulls to empty text."""
        priority = row.get("priority")
        return cls(
            id=int(row["id"]),
            name=row.get("name") or "",
            email=row.get("email") or "",
            phone_number=row.get("phone_number") or "",
            address=row.get("address") or "",
            notes=row.get("notes") or "",
            status=row.get("status") or None,
            priority=Priority(priority) if priority else None,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_dict(self):
        data = asdict(self)
        data["priority"] = self.priority.value if self.priority else None
        return data

    def with_status(self, status):
        return replace(self, status=status)


@dataclass(frozen=True)
class StageMeta:
    id: str
    title: str
    color: StageColor = StageColor.BLUE
    position: int = 0

    @classmethod
    def from_dict(cls, row):
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            color=StageColor(row.get("color") or StageColor.BLUE.value),
            position=int(row.get("position") or 0),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "color": self.color.value,
            "position": self.position,
        }


@dataclass(frozen=True)
class Stage:
    """A stage together with the leads currently rendered in it."""

    meta: StageMeta
    leads: tuple = field(default_factory=tuple)

    @property
    def id(self):
        return self.meta.id

    @property
    def title(self):
        return self.meta.title

    def to_dict(self):
        data = self.meta.to_dict()
        data["leads"] = [lead.to_dict() for lead in self.leads]
        return data


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    lead_id: int
    from_column: str
    to_column: str
    from_column_title: Optional[str] = None
    to_column_title: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, row):
        return cls(
            id=str(row["id"]),
            lead_id=int(row["lead_id"]),
            from_column=row["from_column"],
            to_column=row["to_column"],
            from_column_title=row.get("from_column_title"),
            to_column_title=row.get("to_column_title"),
            notes=row.get("notes"),
            created_at=row.get("created_at"),
        )

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class PropertyChange:
    id: str
    lead_id: int
    property_name: str
    from_value: Optional[str] = None
    to_value: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, row):
        return cls(
            id=str(row["id"]),
            lead_id=int(row["lead_id"]),
            property_name=row["property_name"],
            from_value=row.get("from_value"),
            to_value=row.get("to_value"),
            notes=row.get("notes"),
            created_at=row.get("created_at"),
        )

    def to_dict(self):
        return asdict(self)
