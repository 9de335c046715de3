"""Remote store gateway interface.

The sync engine talks to the store only through this interface. Concrete
gateways translate every backend failure into RemoteStoreError and return
the value types from leadboard.engine.types.
"""

import abc
from dataclasses import dataclass

from leadboard.engine.types import LEAD_FIELDS


@dataclass(frozen=True)
class GatewayCapabilities:
    """What the backing store supports, resolved once at startup.

    priority_column: the leads table has a ``priority`` column. When False
        the gateway neither reads nor writes priority.
    positions_rpc: the store exposes the ``update_kanban_board_positions``
        function for bulk position writes.
    """

    priority_column: bool = True
    positions_rpc: bool = False

    @classmethod
    def from_config(cls, config):
        return cls(
            priority_column=bool(config.get("STORE_HAS_PRIORITY", True)),
            positions_rpc=bool(config.get("STORE_POSITIONS_RPC", False)),
        )

    def lead_fields(self):
        if self.priority_column:
            return LEAD_FIELDS
        return tuple(f for f in LEAD_FIELDS if f != "priority")

    def filter_lead_patch(self, patch):
        """Drop keys the store cannot hold."""
        allowed = self.lead_fields()
        return {k: v for k, v in patch.items() if k in allowed}


class RemoteStoreGateway(abc.ABC):
    """CRUD over the leads, stages and history tables."""

    def __init__(self, capabilities=None):
        self.capabilities = capabilities or GatewayCapabilities()

    # --- Leads ---

    @abc.abstractmethod
    def list_leads(self):
        """All leads, newest first."""

    @abc.abstractmethod
    def search_leads(self, query):
        """Leads whose text fields contain ``query`` (case-insensitive)."""

    @abc.abstractmethod
    def get_lead(self, lead_id):
        """The lead, or None."""

    @abc.abstractmethod
    def create_lead(self, data):
        """Insert a lead and return it with its server-assigned id."""

    @abc.abstractmethod
    def update_lead(self, lead_id, patch):
        """Apply ``patch`` and return the stored lead."""

    @abc.abstractmethod
    def delete_lead(self, lead_id):
        """Delete a lead. History rows go with it."""

    # --- Stages ---

    @abc.abstractmethod
    def list_stages(self):
        """All stages ordered by position."""

    @abc.abstractmethod
    def create_stage(self, data):
        """Insert a stage (title, color, position) and return it."""

    @abc.abstractmethod
    def update_stage(self, stage_id, patch):
        """Apply a title/color patch and return the stored stage."""

    @abc.abstractmethod
    def delete_stage(self, stage_id):
        """Delete a stage row. Does not touch leads."""

    @abc.abstractmethod
    def update_positions(self, positions):
        """Write ``[(stage_id, position), ...]`` in one logical operation."""

    # --- History ---

    @abc.abstractmethod
    def create_history_entry(
        self,
        lead_id,
        from_column,
        to_column,
        from_title=None,
        to_title=None,
        notes=None,
    ):
        """Append one movement record and return it."""

    @abc.abstractmethod
    def list_history(self, lead_id):
        """Movement records for a lead, newest first."""

    @abc.abstractmethod
    def create_property_change(
        self, lead_id, property_name, from_value, to_value, notes=None
    ):
        """Append one property-change record and return it."""

    @abc.abstractmethod
    def list_property_changes(self, lead_id):
        """Property-change records for a lead, newest first."""
