"""SQL gateway — the remote store as a direct database connection.

Runs against whatever ``SQLALCHEMY_DATABASE_URI`` points at (Supabase
Postgres in production, SQLite in tests). Every public method commits its
own transaction; any SQLAlchemyError is rolled back and re-raised as
RemoteStoreError.
"""

import logging
from datetime import datetime, timezone
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from leadboard.engine.types import HistoryEntry, Lead, PropertyChange, StageMeta
from leadboard.errors import RemoteStoreError
from leadboard.extensions import db
from leadboard.gateway.base import RemoteStoreGateway
from leadboard.models.kanban import KanbanBoard, KanbanCardHistory
from leadboard.models.lead import Lead as LeadRow
from leadboard.models.lead_property_history import LeadPropertyHistory

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "email", "phone_number", "address", "notes")


def _store_call(f):
    """Roll back on any store failure and wrap database errors."""

    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except RemoteStoreError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"{f.__name__} failed: {e}")
            raise RemoteStoreError(f"Database error in {f.__name__}") from e

    return decorated


def _iso(value):
    return value.isoformat() if value else None


class SqlGateway(RemoteStoreGateway):

    # ─── Row conversion ──────────────────────────────────────────

    def _lead(self, row):
        data = {
            "id": row.id,
            "name": row.name,
            "email": row.email,
            "phone_number": row.phone_number,
            "address": row.address,
            "notes": row.notes,
            "status": row.status,
            "created_at": _iso(row.created_at),
            "updated_at": _iso(row.updated_at),
        }
        if self.capabilities.priority_column:
            data["priority"] = row.priority
        return Lead.from_dict(data)

    @staticmethod
    def _stage(row):
        return StageMeta.from_dict({
            "id": row.id,
            "title": row.title,
            "color": row.color,
            "position": row.position,
        })

    @staticmethod
    def _history(row):
        return HistoryEntry.from_dict({
            "id": row.id,
            "lead_id": row.lead_id,
            "from_column": row.from_column,
            "to_column": row.to_column,
            "from_column_title": row.from_column_title,
            "to_column_title": row.to_column_title,
            "notes": row.notes,
            "created_at": _iso(row.created_at),
        })

    @staticmethod
    def _property_change(row):
        return PropertyChange.from_dict({
            "id": row.id,
            "lead_id": row.lead_id,
            "property_name": row.property_name,
            "from_value": row.from_value,
            "to_value": row.to_value,
            "notes": row.notes,
            "created_at": _iso(row.created_at),
        })

    def _get_lead_row(self, lead_id):
        row = db.session.get(LeadRow, lead_id)
        if row is None:
            raise RemoteStoreError(f"Lead {lead_id} does not exist in the store.")
        return row

    def _get_stage_row(self, stage_id):
        row = db.session.get(KanbanBoard, stage_id)
        if row is None:
            raise RemoteStoreError(f"Stage '{stage_id}' does not exist in the store.")
        return row

    # ─── Leads ───────────────────────────────────────────────────

    @_store_call
    def list_leads(self):
        rows = LeadRow.query.order_by(LeadRow.created_at.desc(), LeadRow.id.desc()).all()
        return [self._lead(r) for r in rows]

    @_store_call
    def search_leads(self, query):
        pattern = f"%{query}%"
        rows = (
            LeadRow.query
            .filter(db.or_(*[getattr(LeadRow, f).ilike(pattern) for f in SEARCH_FIELDS]))
            .order_by(LeadRow.created_at.desc(), LeadRow.id.desc())
            .all()
        )
        return [self._lead(r) for r in rows]

    @_store_call
    def get_lead(self, lead_id):
        row = db.session.get(LeadRow, lead_id)
        return self._lead(row) if row else None

    @_store_call
    def create_lead(self, data):
        data = self.capabilities.filter_lead_patch(data)
        data["name"] = data.get("name") or ""
        now = datetime.now(timezone.utc)
        row = LeadRow(created_at=now, updated_at=now, **data)
        db.session.add(row)
        db.session.commit()
        return self._lead(row)

    @_store_call
    def update_lead(self, lead_id, patch):
        row = self._get_lead_row(lead_id)
        for key, value in self.capabilities.filter_lead_patch(patch).items():
            setattr(row, key, value)
        row.updated_at = datetime.now(timezone.utc)
        db.session.commit()
        return self._lead(row)

    @_store_call
    def delete_lead(self, lead_id):
        row = self._get_lead_row(lead_id)
        db.session.delete(row)
        db.session.commit()

    # ─── Stages ──────────────────────────────────────────────────

    @_store_call
    def list_stages(self):
        rows = KanbanBoard.query.order_by(KanbanBoard.position).all()
        return [self._stage(r) for r in rows]

    @_store_call
    def create_stage(self, data):
        row = KanbanBoard(
            title=data["title"],
            color=data.get("color", "blue"),
            position=data.get("position", 0),
        )
        if data.get("id"):
            row.id = data["id"]
        db.session.add(row)
        db.session.commit()
        return self._stage(row)

    @_store_call
    def update_stage(self, stage_id, patch):
        row = self._get_stage_row(stage_id)
        for key in ("title", "color"):
            if key in patch:
                setattr(row, key, patch[key])
        db.session.commit()
        return self._stage(row)

    @_store_call
    def delete_stage(self, stage_id):
        row = db.session.get(KanbanBoard, stage_id)
        if row:
            db.session.delete(row)
            db.session.commit()

    @_store_call
    def update_positions(self, positions):
        # One transaction: either every position is written or none is.
        rows = [
            (self._get_stage_row(stage_id), position) for stage_id, position in positions
        ]
        for row, position in rows:
            row.position = position
        db.session.commit()

    # ─── History ─────────────────────────────────────────────────

    @_store_call
    def create_history_entry(
        self,
        lead_id,
        from_column,
        to_column,
        from_title=None,
        to_title=None,
        notes=None,
    ):
        row = KanbanCardHistory(
            lead_id=lead_id,
            from_column=from_column,
            to_column=to_column,
            from_column_title=from_title,
            to_column_title=to_title,
            notes=notes,
            created_at=datetime.now(timezone.utc),
        )
        db.session.add(row)
        db.session.commit()
        return self._history(row)

    @_store_call
    def list_history(self, lead_id):
        rows = (
            KanbanCardHistory.query
            .filter_by(lead_id=lead_id)
            .order_by(KanbanCardHistory.created_at.desc())
            .all()
        )
        return [self._history(r) for r in rows]

    @_store_call
    def create_property_change(
        self, lead_id, property_name, from_value, to_value, notes=None
    ):
        row = LeadPropertyHistory(
            lead_id=lead_id,
            property_name=property_name,
            from_value=from_value,
            to_value=to_value,
            notes=notes,
            created_at=datetime.now(timezone.utc),
        )
        db.session.add(row)
        db.session.commit()
        return self._property_change(row)

    @_store_call
    def list_property_changes(self, lead_id):
        rows = (
            LeadPropertyHistory.query
            .filter_by(lead_id=lead_id)
            .order_by(LeadPropertyHistory.created_at.desc())
            .all()
        )
        return [self._property_change(r) for r in rows]
