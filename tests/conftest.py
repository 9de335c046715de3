"""Shared test fixtures for the leadboard test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, SQL backend)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: three stages and four leads in the SQL store
- gateway: in-memory RemoteStoreGateway with failure injection
"""

import itertools
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from leadboard import create_app
from leadboard.engine.types import HistoryEntry, Lead, PropertyChange, StageMeta
from leadboard.errors import RemoteStoreError
from leadboard.extensions import db as _db
from leadboard.gateway.base import GatewayCapabilities, RemoteStoreGateway
from leadboard.models.kanban import KanbanBoard
from leadboard.models.lead import Lead as LeadRow


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def seed_data(app, db_session):
    """Stages new/qualified/closed and four leads, one of them orphaned.

    Returns a dict of plain ids so tests can use them across contexts.
    """
    base = datetime(2026, 10, 1, tzinfo=timezone.utc)
    with app.app_context():
        for position, (sid, title, color) in enumerate([
            ("new", "New Leads", "blue"),
            ("qualified", "Qualified", "green"),
            ("closed", "Closed", "gray"),
        ]):
            _db.session.add(KanbanBoard(id=sid, title=title, color=color, position=position))

        leads = [
            LeadRow(name="Ada", email="ada@example.com", status="new",
                    priority="low", created_at=base),
            LeadRow(name="Grace", email="grace@example.com", status="qualified",
                    priority="high", created_at=base + timedelta(days=1)),
            LeadRow(name="Linus", email="linus@example.com", status="qualified",
                    created_at=base + timedelta(days=2)),
            LeadRow(name="Orphan", email="orphan@example.com", status="archived",
                    created_at=base + timedelta(days=3)),
        ]
        _db.session.add_all(leads)
        _db.session.commit()

        return {
            "stage_ids": ["new", "qualified", "closed"],
            "ada_id": leads[0].id,
            "grace_id": leads[1].id,
            "linus_id": leads[2].id,
            "orphan_id": leads[3].id,
        }


# ─── In-memory gateway ─────────────────────────────────────────

class FakeGateway(RemoteStoreGateway):
    """Dict-backed gateway.

    ``fail`` holds method names that raise RemoteStoreError.
    ``before`` maps a method name to a callable run at the start of that
    call, which lets a test look at the engine while the call is in flight.
    ``calls`` records (method, args) for every call.
    """

    def __init__(self, stages=(), leads=(), capabilities=None):
        super().__init__(capabilities or GatewayCapabilities())
        self.stages = {s.id: s for s in stages}
        self.leads = {l.id: l for l in leads}
        self.history = []
        self.property_changes = []
        self.fail = set()
        self.before = {}
        self.calls = []
        self._ids = itertools.count(1000)

    def _enter(self, name, *args):
        self.calls.append((name, args))
        hook = self.before.get(name)
        if hook:
            hook(*args)
        if name in self.fail:
            raise RemoteStoreError(f"{name} failed")

    def calls_to(self, name):
        return [args for called, args in self.calls if called == name]

    # --- Leads ---

    def list_leads(self):
        self._enter("list_leads")
        return list(self.leads.values())

    def search_leads(self, query):
        self._enter("search_leads", query)
        q = query.lower()
        return [l for l in self.leads.values() if q in l.name.lower() or q in l.email.lower()]

    def get_lead(self, lead_id):
        self._enter("get_lead", lead_id)
        return self.leads.get(lead_id)

    def create_lead(self, data):
        self._enter("create_lead", data)
        lead = Lead.from_dict(dict(data, id=next(self._ids)))
        self.leads[lead.id] = lead
        return lead

    def update_lead(self, lead_id, patch):
        self._enter("update_lead", lead_id, patch)
        current = self.leads[lead_id].to_dict()
        current.update(patch)
        current["updated_at"] = "2026-10-18T12:00:00+00:00"
        self.leads[lead_id] = Lead.from_dict(current)
        return self.leads[lead_id]

    def delete_lead(self, lead_id):
        self._enter("delete_lead", lead_id)
        self.leads.pop(lead_id, None)
        self.history = [h for h in self.history if h.lead_id != lead_id]

    # --- Stages ---

    def list_stages(self):
        self._enter("list_stages")
        return sorted(self.stages.values(), key=lambda s: s.position)

    def create_stage(self, data):
        self._enter("create_stage", data)
        stage = StageMeta.from_dict(dict(data, id=data.get("id") or f"stage-{next(self._ids)}"))
        self.stages[stage.id] = stage
        return stage

    def update_stage(self, stage_id, patch):
        self._enter("update_stage", stage_id, patch)
        current = self.stages[stage_id].to_dict()
        current.update(patch)
        self.stages[stage_id] = StageMeta.from_dict(current)
        return self.stages[stage_id]

    def delete_stage(self, stage_id):
        self._enter("delete_stage", stage_id)
        self.stages.pop(stage_id, None)

    def update_positions(self, positions):
        self._enter("update_positions", positions)
        for stage_id, position in positions:
            self.stages[stage_id] = replace(self.stages[stage_id], position=position)

    # --- History ---

    def create_history_entry(self, lead_id, from_column, to_column,
                             from_title=None, to_title=None, notes=None):
        self._enter("create_history_entry", lead_id, from_column, to_column)
        entry = HistoryEntry(
            id=str(next(self._ids)),
            lead_id=lead_id,
            from_column=from_column,
            to_column=to_column,
            from_column_title=from_title,
            to_column_title=to_title,
            notes=notes,
        )
        self.history.append(entry)
        return entry

    def list_history(self, lead_id):
        self._enter("list_history", lead_id)
        return [h for h in reversed(self.history) if h.lead_id == lead_id]

    def create_property_change(self, lead_id, property_name, from_value, to_value, notes=None):
        self._enter("create_property_change", lead_id, property_name)
        change = PropertyChange(
            id=str(next(self._ids)),
            lead_id=lead_id,
            property_name=property_name,
            from_value=from_value,
            to_value=to_value,
            notes=notes,
        )
        self.property_changes.append(change)
        return change

    def list_property_changes(self, lead_id):
        self._enter("list_property_changes", lead_id)
        return [c for c in reversed(self.property_changes) if c.lead_id == lead_id]


@pytest.fixture
def gateway():
    """Stages X/Y/Z (positions 0..2) with leads 1, 2 in X and 3 in Y."""
    return FakeGateway(
        stages=[
            StageMeta(id="x", title="Stage X", position=0),
            StageMeta(id="y", title="Stage Y", position=1),
            StageMeta(id="z", title="Stage Z", position=2),
        ],
        leads=[
            Lead(id=1, name="One", email="one@example.com", status="x"),
            Lead(id=2, name="Two", email="two@example.com", status="x"),
            Lead(id=3, name="Three", email="three@example.com", status="y"),
        ],
    )
