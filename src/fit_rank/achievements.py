"""Badge awarding for fit-rank.

Reads a user's history from the store, evaluates the badge catalog, and merges
newly earned ids into the stored set. The merge is a compare-and-set loop so
that two concurrent evaluations never drop each other's badges.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo

from fit_rank.badges import BADGES_BY_ID, BadgeDefinition, build_user_stats, evaluate, ordered_badge_ids
from fit_rank.db import Database

logger = logging.getLogger(__name__)

MAX_MERGE_ATTEMPTS = 3


def merge_earned_badges(
    store: Database,
    user_id: str,
    new_ids: Iterable[str],
    evaluated_at: datetime | None = None,
    max_attempts: int = MAX_MERGE_ATTEMPTS,
) -> bool:
    """Add ``new_ids`` to whatever badge set is stored for the user right now.

    Each attempt re-reads the stored state, unions, and writes conditionally on
    the version it read. Returns False if every attempt lost the race; the
    badges will be detected again on the next evaluation.
    """
    additions = set(new_ids)
    if not additions:
        return True
    stamp = evaluated_at or datetime.now(tz=timezone.utc)

    for attempt in range(1, max_attempts + 1):
        state = store.get_achievement_state(user_id)
        current = list(state.earned_badge_ids)
        missing = [bid for bid in ordered_badge_ids(additions) if bid not in state.earned]
        if not missing:
            return True
        if store.compare_and_set_badges(user_id, state.version, current + missing, stamp):
            logger.info("Awarded %d badge(s) to %s: %s", len(missing), user_id, ", ".join(missing))
            return True
        logger.debug("Badge write conflict for %s (attempt %d/%d)", user_id, attempt, max_attempts)

    logger.warning("Gave up merging badges for %s after %d attempts", user_id, max_attempts)
    return False


def check_and_award_badges(
    store: Database,
    user_id: str,
    as_of: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[BadgeDefinition]:
    """Evaluate and persist badges for one user. Returns the newly awarded badges.

    Store failures never propagate: an unreadable history means no new badges
    this cycle, and a failed write is left for the next evaluation.
    """
    now = as_of or datetime.now(tz=timezone.utc)
    try:
        history = store.get_user_workouts(user_id)
        member = store.get_member(user_id)
        state = store.get_achievement_state(user_id)
    except sqlite3.Error:
        logger.warning("Stats unavailable for %s; skipping badge check", user_id, exc_info=True)
        return []

    stats = build_user_stats(
        history,
        now,
        has_team=bool(member and member.team_id),
        tz=tz,
    )
    newly = evaluate(stats, state.earned)
    if not newly:
        return []

    try:
        merged = merge_earned_badges(store, user_id, newly, evaluated_at=now)
    except sqlite3.Error:
        logger.warning("Could not save badges for %s", user_id, exc_info=True)
        return []
    if not merged:
        return []
    return [BADGES_BY_ID[bid] for bid in ordered_badge_ids(newly)]
