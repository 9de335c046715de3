"""Tests for the SQL gateway and the engine running on top of it.

Covers:
- Lead list/search/get/create/update/delete (incl. history cascade)
- Stage list/create/update/delete/positions
- History and property-change records
- Priority capability switch
- SQLAlchemy errors surfaced as RemoteStoreError
- End-to-end: engine intents persisted through the gateway
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from leadboard.engine.sync import SyncEngine
from leadboard.engine.types import Priority, StageColor
from leadboard.errors import RemoteStoreError
from leadboard.extensions import db
from leadboard.gateway.base import GatewayCapabilities
from leadboard.gateway.sql import SqlGateway
from leadboard.models.kanban import KanbanBoard, KanbanCardHistory
from leadboard.models.lead import Lead as LeadRow


@pytest.fixture
def sql_gateway(app):
    return SqlGateway(GatewayCapabilities())


class TestLeads:

    def test_list_newest_first(self, sql_gateway, seed_data):
        names = [lead.name for lead in sql_gateway.list_leads()]
        assert names == ["Orphan", "Linus", "Grace", "Ada"]

    def test_search_matches_any_text_field(self, sql_gateway, seed_data):
        assert [l.name for l in sql_gateway.search_leads("GRACE")] == ["Grace"]
        assert len(sql_gateway.search_leads("example.com")) == 4
        assert sql_gateway.search_leads("nobody") == []

    def test_get_lead(self, sql_gateway, seed_data):
        lead = sql_gateway.get_lead(seed_data["grace_id"])
        assert lead.email == "grace@example.com"
        assert lead.priority is Priority.HIGH
        assert sql_gateway.get_lead(9999) is None

    def test_create_lead(self, sql_gateway, seed_data):
        lead = sql_gateway.create_lead({
            "name": "Margaret", "email": "margaret@example.com", "status": "new",
        })
        assert lead.id is not None
        assert lead.created_at is not None
        assert db.session.get(LeadRow, lead.id).status == "new"

    def test_update_lead(self, sql_gateway, seed_data):
        lead = sql_gateway.update_lead(seed_data["ada_id"], {"status": "closed"})
        assert lead.status == "closed"

    def test_update_missing_lead_raises(self, sql_gateway, seed_data):
        with pytest.raises(RemoteStoreError):
            sql_gateway.update_lead(9999, {"status": "new"})

    def test_delete_cascades_history(self, sql_gateway, seed_data):
        ada = seed_data["ada_id"]
        sql_gateway.create_history_entry(ada, "new", "qualified")
        sql_gateway.delete_lead(ada)
        assert db.session.get(LeadRow, ada) is None
        assert KanbanCardHistory.query.filter_by(lead_id=ada).count() == 0

    def test_commit_failure_wrapped(self, sql_gateway, seed_data):
        with patch.object(db.session, "commit", side_effect=SQLAlchemyError("boom")):
            with pytest.raises(RemoteStoreError, match="update_lead"):
                sql_gateway.update_lead(seed_data["ada_id"], {"name": "X"})


class TestStages:

    def test_list_by_position(self, sql_gateway, seed_data):
        stages = sql_gateway.list_stages()
        assert [s.id for s in stages] == ["new", "qualified", "closed"]
        assert stages[1].color is StageColor.GREEN

    def test_create_assigns_id(self, sql_gateway, seed_data):
        stage = sql_gateway.create_stage({"title": "Won", "color": "red", "position": 3})
        assert len(stage.id) == 36
        assert stage.position == 3

    def test_update_and_delete(self, sql_gateway, seed_data):
        sql_gateway.update_stage("closed", {"title": "Done"})
        assert db.session.get(KanbanBoard, "closed").title == "Done"
        sql_gateway.delete_stage("closed")
        assert db.session.get(KanbanBoard, "closed") is None

    def test_update_positions(self, sql_gateway, seed_data):
        sql_gateway.update_positions([("closed", 0), ("new", 1), ("qualified", 2)])
        assert [s.id for s in sql_gateway.list_stages()] == ["closed", "new", "qualified"]

    def test_update_positions_unknown_stage_raises(self, sql_gateway, seed_data):
        with pytest.raises(RemoteStoreError):
            sql_gateway.update_positions([("ghost", 0)])

    def test_partial_update_positions_is_not_saved(self, sql_gateway, seed_data):
        with pytest.raises(RemoteStoreError):
            sql_gateway.update_positions([("closed", 0), ("new", 1), ("ghost", 2)])

        # A later, unrelated commit must not flush the half-applied order.
        sql_gateway.update_stage("qualified", {"title": "Hot"})
        db.session.expire_all()
        positions = {row.id: row.position for row in KanbanBoard.query}
        assert positions == {"new": 0, "qualified": 1, "closed": 2}


class TestHistory:

    def test_history_newest_first(self, sql_gateway, seed_data):
        ada = seed_data["ada_id"]
        sql_gateway.create_history_entry(ada, "new", "qualified", "New Leads", "Qualified")
        sql_gateway.create_history_entry(ada, "qualified", "closed", notes="signed")
        entries = sql_gateway.list_history(ada)
        assert [e.to_column for e in entries] == ["closed", "qualified"]
        assert entries[0].notes == "signed"
        assert entries[1].from_column_title == "New Leads"

    def test_property_changes(self, sql_gateway, seed_data):
        ada = seed_data["ada_id"]
        sql_gateway.create_property_change(ada, "priority", "low", "high", notes="call back")
        changes = sql_gateway.list_property_changes(ada)
        assert [(c.property_name, c.from_value, c.to_value) for c in changes] == [
            ("priority", "low", "high"),
        ]


class TestCapabilities:

    def test_priority_ignored_without_column(self, app, seed_data):
        gateway = SqlGateway(GatewayCapabilities(priority_column=False))
        assert gateway.get_lead(seed_data["grace_id"]).priority is None
        gateway.update_lead(seed_data["ada_id"], {"priority": "high"})
        assert db.session.get(LeadRow, seed_data["ada_id"]).priority == "low"


class TestEngineOnSql:

    def test_orphan_shown_in_first_stage(self, sql_gateway, seed_data):
        engine = SyncEngine(sql_gateway)
        engine.load()
        first = engine.view[0]
        assert first.id == "new"
        assert {l.name for l in first.leads} == {"Ada", "Orphan"}
        assert db.session.get(LeadRow, seed_data["orphan_id"]).status == "archived"

    def test_move_persists_status_and_history(self, sql_gateway, seed_data):
        engine = SyncEngine(sql_gateway)
        engine.load()
        engine.move_lead(seed_data["ada_id"], "closed", "won")
        assert db.session.get(LeadRow, seed_data["ada_id"]).status == "closed"
        entries = sql_gateway.list_history(seed_data["ada_id"])
        assert len(entries) == 1
        assert (entries[0].from_column_title, entries[0].to_column_title) == ("New Leads", "Closed")

    def test_remove_stage_reassigns_persisted_leads(self, sql_gateway, seed_data):
        engine = SyncEngine(sql_gateway)
        engine.load()
        engine.remove_stage("qualified")
        assert LeadRow.query.filter_by(status="qualified").count() == 0
        assert db.session.get(LeadRow, seed_data["grace_id"]).status == "new"
        assert db.session.get(KanbanBoard, "qualified") is None

    def test_failed_reorder_resyncs_to_stored_order(self, sql_gateway, seed_data):
        engine = SyncEngine(sql_gateway)
        engine.load()
        # Another client removes a stage after this engine loaded the board.
        db.session.delete(db.session.get(KanbanBoard, "qualified"))
        db.session.commit()

        with pytest.raises(RemoteStoreError):
            engine.reorder_stages(["closed", "new", "qualified"])

        assert [(s.id, s.position) for s in engine.stages] == [("new", 0), ("closed", 2)]
        db.session.expire_all()
        assert [s.id for s in sql_gateway.list_stages()] == ["new", "closed"]
