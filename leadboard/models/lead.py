"""Lead model (CRM contact).

``status`` holds the id of the kanban board the lead sits in. It may point
at a board that no longer exists; the board view shows such leads in the
first board until they are moved.
"""

from leadboard.extensions import db


class Lead(db.Model):
    __tablename__ = "leads"

    PRIORITIES = ["low", "medium", "high"]

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(500), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(36), nullable=True, index=True)
    priority = db.Column(db.String(10), nullable=True)  # low | medium | high
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    # ORM-side cascade mirrors the ON DELETE CASCADE on the history tables
    # (SQLite does not enforce it without PRAGMA foreign_keys).
    history = db.relationship(
        "KanbanCardHistory",
        backref="lead",
        lazy="dynamic",
        cascade="all, delete-orphan",
        order_by="KanbanCardHistory.created_at.desc()",
    )
    property_changes = db.relationship(
        "LeadPropertyHistory",
        backref="lead",
        lazy="dynamic",
        cascade="all, delete-orphan",
        order_by="LeadPropertyHistory.created_at.desc()",
    )

    def __repr__(self):
        return f"<Lead {self.name} ({self.status})>"
