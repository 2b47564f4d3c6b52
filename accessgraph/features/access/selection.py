"""
Extremal benchmark subject selection.

heavy manage user: most manageable resources.
regular view user: most viewable resources, other than the heavy manage user.

Ties go to the smallest id (numeric ids in numeric order), so the choice is
deterministic for equal counts.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from accessgraph.features.relations.utils import id_sort_key


@dataclass(frozen=True)
class ExtremalUsers:
    heavy_manage_user: Optional[str] = None
    regular_view_user: Optional[str] = None


def argmax_user(counts: Mapping[str, int], exclude: Optional[str] = None) -> Optional[str]:
    """User with the highest positive count, or None if no user has one."""
    best_user: Optional[str] = None
    best_count = 0
    for user_id in sorted(counts, key=id_sort_key):
        if user_id == exclude:
            continue
        count = counts[user_id]
        if count > best_count:
            best_user, best_count = user_id, count
    return best_user


def pick_extremal_users(
    manage_count: Mapping[str, int],
    view_count: Mapping[str, int],
    manage_override: Optional[str] = None,
    view_override: Optional[str] = None,
) -> ExtremalUsers:
    """
    Choose the heavy manager and the regular viewer.

    The regular viewer falls back to the heavy manager when no other user can
    view anything. Non-empty overrides replace the computed choices
    unconditionally. A None result means "skip that benchmark".
    """
    heavy = argmax_user(manage_count)
    regular = argmax_user(view_count, exclude=heavy) or heavy
    if manage_override:
        heavy = manage_override
    if view_override:
        regular = view_override
    return ExtremalUsers(heavy_manage_user=heavy, regular_view_user=regular)
