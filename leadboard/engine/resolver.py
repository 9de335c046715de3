"""Stage assignment: group a flat lead list under the ordered stages.

Leads whose status is empty or points at a stage that no longer exists
("orphans") are shown in the first stage. Their stored status is left
alone; only a real move rewrites it.
"""

from leadboard.engine.types import Stage

SORT_MODES = (
    "none",
    "priority-high-first",
    "priority-low-first",
    "date-newest",
    "date-oldest",
)

_PRIORITY_WEIGHT = {"high": 3, "medium": 2, "low": 1, None: 0}


def ordered_stages(stages):
    """Stages in display order. sorted() is stable, so ties keep input order."""
    return sorted(stages, key=lambda s: s.position)


def resolve(leads, stages):
    """Return a list of Stage objects, each owning its leads.

    Pure: neither argument is modified. With no stages there is nothing to
    render into, so the result is an empty list.
    """
    stages = ordered_stages(stages)
    if not stages:
        return []

    known = {stage.id for stage in stages}
    buckets = {stage.id: [] for stage in stages}
    orphans = []
    for lead in leads:
        if lead.status and lead.status in known:
            buckets[lead.status].append(lead)
        else:
            orphans.append(lead)

    buckets[stages[0].id].extend(orphans)
    return [Stage(meta=stage, leads=tuple(buckets[stage.id])) for stage in stages]


def fallback_stage(stages, exclude=None):
    """First stage by position, skipping ``exclude``. None if nothing is left."""
    for stage in ordered_stages(stages):
        if stage.id != exclude:
            return stage
    return None


def order_leads(view, mode="none"):
    """Re-sort the leads inside each stage for display.

    Args:
        view: list of Stage, as returned by resolve().
        mode: one of SORT_MODES.

    Raises:
        ValueError: If mode is not a known sort mode.
    """
    if mode not in SORT_MODES:
        raise ValueError(
            f"Invalid sort mode '{mode}'. Must be one of: {', '.join(SORT_MODES)}"
        )
    if mode == "none":
        return list(view)

    def weight(lead):
        return _PRIORITY_WEIGHT[lead.priority.value if lead.priority else None]

    def created(lead):
        return lead.created_at or ""

    if mode == "priority-high-first":
        key, reverse = weight, True
    elif mode == "priority-low-first":
        key, reverse = weight, False
    elif mode == "date-newest":
        key, reverse = created, True
    else:
        key, reverse = created, False

    return [
        Stage(meta=stage.meta, leads=tuple(sorted(stage.leads, key=key, reverse=reverse)))
        for stage in view
    ]
