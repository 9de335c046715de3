"""Kanban board models.

A board is one pipeline stage (a column on the lead board). Leads point at
a board through ``Lead.status``; that column is deliberately not a foreign
key so that a lead can outlive a stage and be shown as an orphan.

Card history records each stage-to-stage move of a lead. Titles are copied
at move time so the history still reads correctly after a stage is renamed
or deleted.
"""

import uuid

from leadboard.extensions import db


class KanbanBoard(db.Model):
    __tablename__ = "kanban_boards"

    COLORS = ["blue", "yellow", "green", "purple", "gray", "red"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title = db.Column(db.String(255), nullable=False)
    color = db.Column(db.String(20), nullable=False, default="blue")
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<KanbanBoard {self.title} @{self.position}>"


class KanbanCardHistory(db.Model):
    __tablename__ = "kanban_card_history"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    lead_id = db.Column(
        db.Integer,
        db.ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_column = db.Column(db.String(255), nullable=False)
    to_column = db.Column(db.String(255), nullable=False)
    from_column_title = db.Column(db.String(255), nullable=True)
    to_column_title = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<KanbanCardHistory lead={self.lead_id} {self.from_column}->{self.to_column}>"
