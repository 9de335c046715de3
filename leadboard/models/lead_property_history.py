"""LeadPropertyHistory model — audit of lead property edits.

Stage moves live in kanban_card_history; this table covers the other
tracked properties (currently priority).
"""

import uuid

from leadboard.extensions import db


class LeadPropertyHistory(db.Model):
    __tablename__ = "lead_property_history"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    lead_id = db.Column(
        db.Integer,
        db.ForeignKey("leads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    property_name = db.Column(db.String(50), nullable=False)  # e.g. "priority"
    from_value = db.Column(db.String(255), nullable=True)
    to_value = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<LeadPropertyHistory {self.property_name} on {self.lead_id}>"
