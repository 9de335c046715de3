"""Supabase gateway — the remote store over Supabase's REST API (PostgREST).

Tables: leads, kanban_boards, kanban_card_history, lead_property_history.
Optional RPC: update_kanban_board_positions(boards_data jsonb) for bulk
position writes (used when the store advertises it, see
GatewayCapabilities.positions_rpc).

Every request failure (connection error, timeout, non-2xx status, empty
representation) is raised as RemoteStoreError.
"""

import logging

import requests

from leadboard.engine.types import HistoryEntry, Lead, PropertyChange, StageMeta
from leadboard.errors import RemoteStoreError
from leadboard.gateway.base import RemoteStoreGateway

logger = logging.getLogger(__name__)

STAGE_COLUMNS = "id,title,color,position"
SEARCH_FIELDS = ("name", "email", "phone_number", "address", "notes")


class SupabaseGateway(RemoteStoreGateway):

    def __init__(self, url, key, capabilities=None, timeout=10):
        super().__init__(capabilities)
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    # ─── HTTP plumbing ───────────────────────────────────────────

    def _request(self, method, path, params=None, json=None, returning=False):
        headers = dict(self.headers)
        if returning:
            headers["Prefer"] = "return=representation"
        url = f"{self.base_url}/{path}"
        try:
            resp = requests.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json() if resp.content else None
        except requests.RequestException as e:
            logger.error(f"Supabase {method} {path} failed: {e}")
            raise RemoteStoreError(f"Supabase {method} {path} failed") from e

    def _single(self, rows, what):
        if not rows:
            raise RemoteStoreError(f"No data returned for {what}")
        return rows[0]

    def _lead_columns(self):
        return ",".join(("id",) + self.capabilities.lead_fields() + ("created_at", "updated_at"))

    # ─── Leads ───────────────────────────────────────────────────

    def list_leads(self):
        rows = self._request("GET", "leads", params={
            "select": self._lead_columns(),
            "order": "created_at.desc",
        })
        return [Lead.from_dict(r) for r in rows or []]

    def search_leads(self, query):
        # PostgREST takes * as the LIKE wildcard in query strings.
        term = query.replace(",", " ").replace("(", " ").replace(")", " ")
        clauses = ",".join(f"{f}.ilike.*{term}*" for f in SEARCH_FIELDS)
        rows = self._request("GET", "leads", params={
            "select": self._lead_columns(),
            "or": f"({clauses})",
            "order": "created_at.desc",
        })
        return [Lead.from_dict(r) for r in rows or []]

    def get_lead(self, lead_id):
        rows = self._request("GET", "leads", params={
            "select": self._lead_columns(),
            "id": f"eq.{lead_id}",
        })
        return Lead.from_dict(rows[0]) if rows else None

    def create_lead(self, data):
        rows = self._request(
            "POST",
            "leads",
            params={"select": self._lead_columns()},
            json=self.capabilities.filter_lead_patch(data),
            returning=True,
        )
        return Lead.from_dict(self._single(rows, "create lead"))

    def update_lead(self, lead_id, patch):
        rows = self._request(
            "PATCH",
            "leads",
            params={"id": f"eq.{lead_id}", "select": self._lead_columns()},
            json=self.capabilities.filter_lead_patch(patch),
            returning=True,
        )
        return Lead.from_dict(self._single(rows, f"update lead {lead_id}"))

    def delete_lead(self, lead_id):
        self._request("DELETE", "leads", params={"id": f"eq.{lead_id}"})

    # ─── Stages ──────────────────────────────────────────────────

    def list_stages(self):
        rows = self._request("GET", "kanban_boards", params={
            "select": STAGE_COLUMNS,
            "order": "position.asc",
        })
        return [StageMeta.from_dict(r) for r in rows or []]

    def create_stage(self, data):
        rows = self._request(
            "POST",
            "kanban_boards",
            params={"select": STAGE_COLUMNS},
            json={k: data[k] for k in ("id", "title", "color", "position") if k in data},
            returning=True,
        )
        return StageMeta.from_dict(self._single(rows, "create stage"))

    def update_stage(self, stage_id, patch):
        rows = self._request(
            "PATCH",
            "kanban_boards",
            params={"id": f"eq.{stage_id}", "select": STAGE_COLUMNS},
            json={k: patch[k] for k in ("title", "color") if k in patch},
            returning=True,
        )
        return StageMeta.from_dict(self._single(rows, f"update stage {stage_id}"))

    def delete_stage(self, stage_id):
        self._request("DELETE", "kanban_boards", params={"id": f"eq.{stage_id}"})

    def update_positions(self, positions):
        if self.capabilities.positions_rpc:
            self._request(
                "POST",
                "rpc/update_kanban_board_positions",
                json={"boards_data": [
                    {"id": stage_id, "position": position}
                    for stage_id, position in positions
                ]},
            )
            return
        for stage_id, position in positions:
            self._request(
                "PATCH",
                "kanban_boards",
                params={"id": f"eq.{stage_id}"},
                json={"position": position},
            )

    # ─── History ─────────────────────────────────────────────────

    def create_history_entry(
        self,
        lead_id,
        from_column,
        to_column,
        from_title=None,
        to_title=None,
        notes=None,
    ):
        rows = self._request(
            "POST",
            "kanban_card_history",
            json={
                "lead_id": lead_id,
                "from_column": from_column,
                "to_column": to_column,
                "from_column_title": from_title,
                "to_column_title": to_title,
                "notes": notes,
            },
            returning=True,
        )
        return HistoryEntry.from_dict(self._single(rows, "create history entry"))

    def list_history(self, lead_id):
        rows = self._request("GET", "kanban_card_history", params={
            "lead_id": f"eq.{lead_id}",
            "order": "created_at.desc",
        })
        return [HistoryEntry.from_dict(r) for r in rows or []]

    def create_property_change(
        self, lead_id, property_name, from_value, to_value, notes=None
    ):
        rows = self._request(
            "POST",
            "lead_property_history",
            json={
                "lead_id": lead_id,
                "property_name": property_name,
                "from_value": from_value,
                "to_value": to_value,
                "notes": notes,
            },
            returning=True,
        )
        return PropertyChange.from_dict(self._single(rows, "create property change"))

    def list_property_changes(self, lead_id):
        rows = self._request("GET", "lead_property_history", params={
            "lead_id": f"eq.{lead_id}",
            "order": "created_at.desc",
        })
        return [PropertyChange.from_dict(r) for r in rows or []]
