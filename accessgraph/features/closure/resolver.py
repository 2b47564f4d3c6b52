"""
Transitive closure of group membership over subgroup edges.

A group's effective set is its direct users plus the effective sets of every
child group reachable through subgroup edges of the same family (member or
manager). The subgroup graph may contain cycles.

Traversal is an explicit-stack depth-first search where each group moves
through NOT_VISITED -> IN_PROGRESS -> DONE. Reaching a group that is still
IN_PROGRESS means a cycle; that edge contributes nothing further. DONE
results are memoized for the lifetime of the resolver, so no group is
expanded twice and the whole family costs O(V + E) plus set unions.
"""
import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from accessgraph.features.relations.store import EdgeKind, RelationStore
from accessgraph.utils import get_logger


log = get_logger(__name__)

EMPTY: frozenset[str] = frozenset()


class VisitState(enum.Enum):
    NOT_VISITED = "not_visited"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class GroupClosureResolver:
    """
    Memoized effective-set resolver for one edge family.

    Args:
        direct: group -> direct users for this family
        children: parent group -> child groups for this family
    """

    def __init__(self, direct: Mapping[str, Iterable[str]], children: Mapping[str, Iterable[str]]):
        self._direct: dict[str, tuple[str, ...]] = {g: tuple(users) for g, users in direct.items()}
        self._children: dict[str, tuple[str, ...]] = {g: tuple(kids) for g, kids in children.items()}
        self._state: dict[str, VisitState] = {}
        self._closure: dict[str, frozenset[str]] = {}
        self.cycle_edges_skipped = 0

    def state(self, group: str) -> VisitState:
        return self._state.get(group, VisitState.NOT_VISITED)

    def groups(self) -> list[str]:
        """Every group known to this family, in first-seen order."""
        seen: dict[str, None] = dict.fromkeys(self._direct)
        for parent, kids in self._children.items():
            seen.setdefault(parent, None)
            for kid in kids:
                seen.setdefault(kid, None)
        return list(seen)

    def effective(self, group: str) -> frozenset[str]:
        """Effective users of `group`, expanding it on first request."""
        if self.state(group) is not VisitState.DONE:
            self._expand(group)
        return self._closure[group]

    def resolve_all(self) -> dict[str, frozenset[str]]:
        """Resolve every known group. Groups with nothing reachable map to an empty set."""
        return {group: self.effective(group) for group in self.groups()}

    def _frame(self, group: str) -> tuple[str, Iterable[str], set[str]]:
        self._state[group] = VisitState.IN_PROGRESS
        # groups only ever seen as children get an empty direct set here
        return group, iter(self._children.get(group, ())), set(self._direct.get(group, ()))

    def _expand(self, root: str) -> None:
        stack = [self._frame(root)]
        while stack:
            group, children, acc = stack[-1]
            for child in children:
                state = self.state(child)
                if state is VisitState.DONE:
                    acc.update(self._closure[child])
                elif state is VisitState.NOT_VISITED:
                    stack.append(self._frame(child))
                    break
                else:
                    self.cycle_edges_skipped += 1
                    log.debug("Subgroup cycle: %s -> %s skipped while %s is in progress", group, child, child)
            else:
                stack.pop()
                result = frozenset(acc) if acc else EMPTY
                self._closure[group] = result
                self._state[group] = VisitState.DONE
                if stack:
                    stack[-1][2].update(result)


def resolve_members(
    group: str,
    closure: Mapping[str, frozenset[str]],
    direct: Mapping[str, Iterable[str]],
) -> frozenset[str]:
    """
    Users to credit for a grant to `group`.

    Uses the group's effective set from `closure`; when that is missing or
    empty, falls back to the group's direct members.
    """
    effective = closure.get(group)
    if effective:
        return effective
    return frozenset(direct.get(group, ()))


@dataclass
class GroupClosure:
    """Effective member and manager sets per group, plus direct members for fallback."""
    members: dict[str, frozenset[str]] = field(default_factory=dict)
    managers: dict[str, frozenset[str]] = field(default_factory=dict)
    direct_members: dict[str, list[str]] = field(default_factory=dict)
    cycle_edges_skipped: int = 0

    def members_of(self, group: str) -> frozenset[str]:
        return resolve_members(group, self.members, self.direct_members)

    def managers_of(self, group: str) -> frozenset[str]:
        return resolve_members(group, self.managers, self.direct_members)


def _append(mapping: dict[str, list[str]], key: str, value: str) -> None:
    mapping.setdefault(key, []).append(value)


def build_closure(store: RelationStore) -> GroupClosure:
    """
    Resolve both edge families of a relation store.

    Members family: direct = group-member and group-manager users (a manager
    is also a member), children via group-subgroup-member edges.
    Managers family: direct = group-manager users, children via
    group-subgroup-manager edges.
    """
    direct_members: dict[str, list[str]] = {}
    direct_managers: dict[str, list[str]] = {}
    member_children: dict[str, list[str]] = {}
    manager_children: dict[str, list[str]] = {}

    for edge in store.edges_of(EdgeKind.GROUP_MEMBER):
        _append(direct_members, edge.object_id, edge.subject_id)
    for edge in store.edges_of(EdgeKind.GROUP_MANAGER):
        _append(direct_members, edge.object_id, edge.subject_id)
        _append(direct_managers, edge.object_id, edge.subject_id)
    # child --subgroup--> parent: the parent includes the child
    for edge in store.edges_of(EdgeKind.GROUP_SUBGROUP_MEMBER):
        _append(member_children, edge.object_id, edge.subject_id)
    for edge in store.edges_of(EdgeKind.GROUP_SUBGROUP_MANAGER):
        _append(manager_children, edge.object_id, edge.subject_id)

    member_resolver = GroupClosureResolver(direct_members, member_children)
    manager_resolver = GroupClosureResolver(direct_managers, manager_children)
    closure = GroupClosure(
        members=member_resolver.resolve_all(),
        managers=manager_resolver.resolve_all(),
        direct_members=direct_members,
        cycle_edges_skipped=member_resolver.cycle_edges_skipped + manager_resolver.cycle_edges_skipped,
    )
    log.info(
        "Resolved group closure: %d member groups, %d manager groups, %d cycle edges skipped",
        len(closure.members), len(closure.managers), closure.cycle_edges_skipped,
    )
    return closure
