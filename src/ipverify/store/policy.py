"""Neighbour tie-break policy.

Decides which role a stored event takes when its timestamp equals the
anchor timestamp. ``classify`` states the rule; ``sql_operators`` and
``boundary_key`` are the forms the SQLite and in-memory stores use, and
must agree with it.

The default treats a simultaneous login as having happened just before
the anchor, so it is reported as the preceding access and never as the
subsequent one.
"""

from enum import Enum
from typing import Tuple

from ipverify.core.types import NeighborRole


class TieBreak(str, Enum):
    """Role given to an event whose timestamp equals the anchor's."""
    PREDECESSOR = "predecessor"
    SUCCESSOR = "successor"


DEFAULT_TIE_BREAK = TieBreak.PREDECESSOR


def classify(
    candidate_ts: int,
    anchor_ts: int,
    policy: TieBreak = DEFAULT_TIE_BREAK,
) -> NeighborRole:
    """Classify a candidate event relative to an anchor timestamp.

    Reference form of the rule. Stores do not call it per row; they use
    the derived comparisons below.
    """
    if candidate_ts < anchor_ts:
        return NeighborRole.PREDECESSOR
    if candidate_ts > anchor_ts:
        return NeighborRole.SUCCESSOR
    if policy == TieBreak.PREDECESSOR:
        return NeighborRole.PREDECESSOR
    return NeighborRole.SUCCESSOR


def sql_operators(policy: TieBreak = DEFAULT_TIE_BREAK) -> Tuple[str, str]:
    """Comparison operators selecting (predecessors, successors) in SQL."""
    if policy == TieBreak.PREDECESSOR:
        return "<=", ">"
    return "<", ">="


def boundary_key(anchor_ts: int, policy: TieBreak = DEFAULT_TIE_BREAK) -> Tuple[int]:
    """Sort key splitting a ``(timestamp, event_id)`` list into roles.

    Every key sorting below the boundary is a predecessor, every key at
    or above it a successor. Timestamps are whole seconds, so
    ``(anchor_ts + 1,)`` sorts after every key with ``anchor_ts``.
    """
    if policy == TieBreak.PREDECESSOR:
        return (anchor_ts + 1,)
    return (anchor_ts,)
