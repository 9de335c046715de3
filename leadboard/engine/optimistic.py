"""Optimistic update helper.

Every optimistic intent runs the same three phases: apply the local change
(returning a snapshot of what it replaced), run the remote call, and on
failure hand the snapshot back to ``restore`` before re-raising.
"""

import logging

logger = logging.getLogger(__name__)


def optimistic(apply, commit, restore):
    """Run ``commit`` with ``apply``'s change visible, undoing it on failure.

    Args:
        apply: Callable making the local change. Returns the snapshot.
        commit: Callable performing the remote call. Its result is returned.
        restore: Callable receiving the snapshot when ``commit`` raises.

    Raises:
        Whatever ``commit`` raised, after ``restore`` has run.
    """
    snapshot = apply()
    try:
        return commit()
    except Exception:
        logger.info("Remote call failed, restoring optimistic change")
        restore(snapshot)
        raise
