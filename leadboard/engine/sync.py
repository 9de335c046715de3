"""Lead/board synchronization engine.

Holds the working copy of stages and leads, turns user intents into
optimistic local changes plus remote calls, and keeps ``view`` (the
resolved board) current after every change.

Failure policy:
  - move/delete/update of a lead: undo that lead's change only, re-raise.
  - remove/reorder of stages: reload everything from the store, re-raise.
  - history writes after a successful move: logged, never raised.
  - invalid intents: PreconditionError before anything is touched.

One engine serves one consumer session and is not thread-safe. Two intents
on the same lead race; whichever remote call resolves last wins.
"""

import logging
from dataclasses import replace
from functools import wraps

from leadboard.engine.optimistic import optimistic
from leadboard.engine.resolver import fallback_stage, ordered_stages, resolve
from leadboard.engine.types import LEAD_FIELDS, Priority, StageColor, StageMeta
from leadboard.errors import NotFoundError, PreconditionError

logger = logging.getLogger(__name__)


def _intent(method):
    """Clear ``error`` before the intent and record it if the intent fails."""

    @wraps(method)
    def decorated(self, *args, **kwargs):
        self.error = None
        try:
            return method(self, *args, **kwargs)
        except Exception as e:
            self.error = str(e) or e.__class__.__name__
            raise

    return decorated


class SyncEngine:
    def __init__(self, gateway):
        self.gateway = gateway
        self.stages = ()
        self.leads = ()
        self.view = []
        self.error = None
        self._subscribers = []

    # ─── Consumers ───────────────────────────────────────────────

    def subscribe(self, callback):
        """Call ``callback(view)`` after every recompute.

        Returns a function that detaches the callback. A detached consumer is
        never called again, but the engine keeps updating its own state.
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _recompute(self):
        self.view = resolve(self.leads, self.stages)
        for callback in list(self._subscribers):
            try:
                callback(self.view)
            except Exception:
                logger.exception("Board subscriber raised; continuing")

    # ─── Lookups ─────────────────────────────────────────────────

    def find_lead(self, lead_id):
        for lead in self.leads:
            if lead.id == lead_id:
                return lead
        return None

    def find_stage(self, stage_id):
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def _require_lead(self, lead_id):
        lead = self.find_lead(lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found.")
        return lead

    def _require_stage(self, stage_id):
        stage = self.find_stage(stage_id)
        if stage is None:
            raise NotFoundError(f"Stage '{stage_id}' not found.")
        return stage

    def _title_of(self, stage_id):
        stage = self.find_stage(stage_id)
        return stage.title if stage else None

    # ─── Working-copy edits ──────────────────────────────────────

    def _replace_lead(self, lead_id, **changes):
        """Apply ``changes`` to one lead if it is still in the working copy."""
        self.leads = tuple(
            replace(lead, **changes) if lead.id == lead_id else lead
            for lead in self.leads
        )
        self._recompute()

    def _set_status(self, lead_id, status):
        """Set a lead's status and return the one it replaced."""
        prior = self._require_lead(lead_id).status
        self._replace_lead(lead_id, status=status)
        return prior

    def _reconcile(self, lead_id, stored, fields):
        """Copy ``fields`` and the timestamp from the stored lead."""
        if stored is None or self.find_lead(lead_id) is None:
            return
        changes = {f: getattr(stored, f) for f in fields}
        changes["updated_at"] = stored.updated_at
        self._replace_lead(lead_id, **changes)

    def _resync(self):
        try:
            self._load()
        except Exception:
            logger.exception("Resync from remote store failed")

    # ─── Load ────────────────────────────────────────────────────

    def _load(self):
        stages = tuple(ordered_stages(self.gateway.list_stages()))
        leads = tuple(self.gateway.list_leads())
        self.stages = stages
        self.leads = leads
        self._recompute()
        return self.view

    @_intent
    def load(self):
        """Fetch stages and leads from the store and resolve the board."""
        view = self._load()
        logger.info(
            f"Loaded board: {len(self.stages)} stages, {len(self.leads)} leads"
        )
        return view

    # ─── Lead intents ────────────────────────────────────────────

    @_intent
    def move_lead(self, lead_id, target_stage_id, notes=""):
        """Move a lead to another stage and record the move.

        Returns the current view. Moving a lead to the stage it is already
        in does nothing.
        """
        return self._move(lead_id, target_stage_id, notes)

    def _move(self, lead_id, target_stage_id, notes):
        lead = self._require_lead(lead_id)
        target = self._require_stage(target_stage_id)
        if lead.status == target.id:
            return self.view

        # An empty status renders in the fallback stage; record that as the source.
        from_column = lead.status or fallback_stage(self.stages).id
        from_title = self._title_of(from_column)

        stored = optimistic(
            apply=lambda: self._set_status(lead_id, target.id),
            commit=lambda: self.gateway.update_lead(lead_id, {"status": target.id}),
            restore=lambda prior: self._replace_lead(lead_id, status=prior),
        )
        self._reconcile(lead_id, stored, ())
        logger.info(f"Moved lead {lead_id}: {from_column} -> {target.id}")

        try:
            self.gateway.create_history_entry(
                lead_id,
                from_column,
                target.id,
                from_title=from_title,
                to_title=target.title,
                notes=notes or None,
            )
        except Exception as e:
            logger.warning(f"History write failed for lead {lead_id}: {e}")

        return self.view

    @_intent
    def delete_lead(self, lead_id):
        """Delete a lead. On failure it reappears at the end of its stage."""
        lead = self._require_lead(lead_id)

        def apply():
            self.leads = tuple(l for l in self.leads if l.id != lead_id)
            self._recompute()
            return lead

        def restore(snapshot):
            if self.find_lead(snapshot.id) is None:
                self.leads = self.leads + (snapshot,)
                self._recompute()

        optimistic(apply, lambda: self.gateway.delete_lead(lead_id), restore)
        logger.info(f"Deleted lead {lead_id}")
        return self.view

    @_intent
    def create_lead(self, data):
        """Create a lead. Without a status it lands in the first stage."""
        data = {k: v for k, v in data.items() if k in LEAD_FIELDS}
        if not (data.get("email") or "").strip():
            raise PreconditionError("Email is required.")
        if not data.get("status"):
            first = fallback_stage(self.stages)
            if first is None:
                raise PreconditionError("Create a stage before adding leads.")
            data["status"] = first.id
        data = self._normalise_priority(data)

        lead = self.gateway.create_lead(data)
        # Working copy is newest-first, like list_leads().
        self.leads = (lead,) + self.leads
        self._recompute()
        logger.info(f"Created lead {lead.id} in stage {lead.status}")
        return lead

    @_intent
    def update_lead(self, lead_id, patch, notes=""):
        """Edit lead properties.

        A ``status`` key is handled as a move (with its history entry). A
        priority change additionally writes a property-change record on a
        best-effort basis.
        """
        lead = self._require_lead(lead_id)
        patch = dict(patch)
        unknown = set(patch) - set(LEAD_FIELDS)
        if unknown:
            raise PreconditionError(
                f"Unknown lead fields: {', '.join(sorted(unknown))}"
            )
        status = patch.pop("status", None)
        if status is not None:
            self._require_stage(status)
        if "email" in patch and not (patch["email"] or "").strip():
            raise PreconditionError("Email is required.")
        if "priority" in patch and not self.gateway.capabilities.priority_column:
            raise PreconditionError("This store does not support lead priority.")
        patch = self._normalise_priority(patch)

        changes = {
            k: (Priority(v) if k == "priority" and v else v) for k, v in patch.items()
        }
        changes = {k: v for k, v in changes.items() if getattr(lead, k) != v}

        if changes:
            def apply():
                snapshot = {k: getattr(lead, k) for k in changes}
                self._replace_lead(lead_id, **changes)
                return snapshot

            def restore(snapshot):
                self._replace_lead(lead_id, **snapshot)

            stored = optimistic(
                apply,
                lambda: self.gateway.update_lead(
                    lead_id, {k: patch[k] for k in changes}
                ),
                restore,
            )
            self._reconcile(lead_id, stored, tuple(changes))
            logger.info(f"Updated lead {lead_id}: {', '.join(sorted(changes))}")

            if "priority" in changes:
                self._record_property_change(
                    lead_id,
                    "priority",
                    lead.priority.value if lead.priority else None,
                    changes["priority"].value if changes["priority"] else None,
                    notes,
                )

        if status is not None:
            return self._move(lead_id, status, notes)
        return self.view

    def _normalise_priority(self, data):
        if "priority" not in data:
            return data
        value = data["priority"] or None
        if value is not None:
            try:
                value = Priority(value).value
            except ValueError:
                raise PreconditionError(
                    f"Invalid priority '{value}'. Must be one of: low, medium, high"
                )
        return dict(data, priority=value)

    def _record_property_change(self, lead_id, name, old, new, notes):
        try:
            self.gateway.create_property_change(
                lead_id, name, old, new, notes=notes or None
            )
        except Exception as e:
            logger.warning(f"Property history write failed for lead {lead_id}: {e}")

    # ─── Stage intents ───────────────────────────────────────────

    @_intent
    def add_stage(self, title, color=StageColor.BLUE):
        """Create a stage at the end of the board. Nothing changes on failure."""
        title = (title or "").strip()
        if not title:
            raise PreconditionError("Stage title is required.")
        color = _coerce_color(color)
        position = max((s.position for s in self.stages), default=-1) + 1

        stage = self.gateway.create_stage(
            {"title": title, "color": color.value, "position": position}
        )
        self.stages = self.stages + (stage,)
        self._recompute()
        logger.info(f"Added stage {stage.id} ({stage.title}) at {stage.position}")
        return stage

    @_intent
    def update_stage(self, stage_id, title=None, color=None):
        """Rename or recolor a stage once the store accepts the change."""
        self._require_stage(stage_id)
        patch = {}
        if title is not None:
            title = title.strip()
            if not title:
                raise PreconditionError("Stage title is required.")
            patch["title"] = title
        if color is not None:
            patch["color"] = _coerce_color(color)
        if not patch:
            raise PreconditionError("Nothing to update.")

        self.gateway.update_stage(
            stage_id,
            {k: (v.value if isinstance(v, StageColor) else v) for k, v in patch.items()},
        )
        # Re-read: another intent may have replaced the tuple meanwhile.
        current = self._require_stage(stage_id)
        updated = replace(current, **patch)
        self.stages = tuple(updated if s.id == stage_id else s for s in self.stages)
        self._recompute()
        return updated

    @_intent
    def remove_stage(self, stage_id):
        """Delete a stage, moving its leads to the first remaining stage.

        The last stage cannot be removed. Persisted lead statuses are
        rewritten before the stage row is deleted. Any remote failure
        triggers a full reload.
        """
        self._require_stage(stage_id)
        if len(self.stages) <= 1:
            raise PreconditionError("Cannot remove the last stage.")
        fallback = fallback_stage(self.stages, exclude=stage_id)

        moved = [lead.id for lead in self.leads if lead.status == stage_id]
        self.leads = tuple(
            lead.with_status(fallback.id) if lead.status == stage_id else lead
            for lead in self.leads
        )
        self.stages = tuple(s for s in self.stages if s.id != stage_id)
        self._recompute()

        try:
            for lead_id in moved:
                self.gateway.update_lead(lead_id, {"status": fallback.id})
            self.gateway.delete_stage(stage_id)
        except Exception:
            logger.warning(f"Removing stage {stage_id} failed; reloading board")
            self._resync()
            raise

        logger.info(
            f"Removed stage {stage_id}; {len(moved)} leads moved to {fallback.id}"
        )
        return self.view

    @_intent
    def reorder_stages(self, new_order):
        """Reorder stages. ``new_order`` holds StageMeta objects or stage ids.

        Positions are rewritten as 0..N-1 in the new order.
        """
        ids = [s.id if isinstance(s, StageMeta) else s for s in new_order]
        if not all(isinstance(stage_id, str) for stage_id in ids):
            raise PreconditionError("New order must list stages or stage ids.")
        current = {s.id: s for s in self.stages}
        if len(set(ids)) != len(ids) or set(ids) != set(current):
            raise PreconditionError("New order must contain every stage exactly once.")

        self.stages = tuple(
            replace(current[stage_id], position=i) for i, stage_id in enumerate(ids)
        )
        self._recompute()

        try:
            self.gateway.update_positions([(s.id, s.position) for s in self.stages])
        except Exception:
            logger.warning("Reordering stages failed; reloading board")
            self._resync()
            raise
        return self.view


def _coerce_color(color):
    try:
        return StageColor(color)
    except ValueError:
        raise PreconditionError(
            f"Invalid color '{color}'. Must be one of: "
            f"{', '.join(c.value for c in StageColor)}"
        )
