"""Beneficial ownership traversal.

Collects every name and identifier that has to be screened for an entity:
the entity itself, its executive, every owner, and for owners that are
organizations, their details, executive and their own owners, to any depth.

The nested owner tree is first flattened into an arena: a pre-order list of
nodes with parent indexes and path ids ("0", "0_1", "0_1_0", ...). Walking
the arena is iterative, so deep trees cannot exhaust the interpreter stack,
and cycle detection is a walk up the parent indexes. An owner found among
its own ancestors (the same object, or an owner sharing a registry
identifier with an ancestor) is reported as a DataIntegrityError and its
subtree is skipped; the rest of the tree is still collected.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Sequence

from compliance.exceptions import DataIntegrityError
from compliance.models import CheckTarget, Entity, OwnershipNode
from compliance.screening.similarity import normalize_name
from compliance.screening.transliteration import transliterate

logger = logging.getLogger(__name__)


def _registry_ids(node: OwnershipNode) -> set:
    """Identifiers that name the same legal person wherever it appears."""
    ids = {node.owner_identifier}
    if node.organization_details is not None:
        ids.add(node.organization_details.tax_id)
    return {i.strip() for i in ids if i and i.strip()}


@dataclass
class OwnershipArena:
    """Flattened ownership tree in depth-first pre-order."""
    nodes: list[OwnershipNode] = field(default_factory=list)
    parents: list[Optional[int]] = field(default_factory=list)
    path_ids: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def ancestors(self, index: int) -> Iterator[int]:
        """Yield the indexes of all ancestors of a node, nearest first."""
        parent = self.parents[index]
        while parent is not None:
            yield parent
            parent = self.parents[parent]

    def depth(self, index: int) -> int:
        return sum(1 for _ in self.ancestors(index))

    def _on_ancestor_path(self, node: OwnershipNode, parent: Optional[int]) -> bool:
        identifiers = _registry_ids(node)
        while parent is not None:
            ancestor = self.nodes[parent]
            if ancestor is node:
                return True
            if identifiers and identifiers & _registry_ids(ancestor):
                return True
            parent = self.parents[parent]
        return False

    @classmethod
    def build(cls, root_owners: Sequence[OwnershipNode]) -> "OwnershipArena":
        """Flatten ``root_owners`` and everything below them."""
        arena = cls()
        # (node, parent index, path id); reversed so pop() keeps list order
        stack = [
            (node, None, str(i)) for i, node in reversed(list(enumerate(root_owners)))
        ]
        while stack:
            node, parent, path_id = stack.pop()
            if arena._on_ancestor_path(node, parent):
                error = DataIntegrityError(
                    f"Owner {node.display_name!r} appears among its own owners",
                    path_id=path_id,
                )
                logger.warning("Skipping ownership subtree at %s: %s", path_id, error)
                arena.skipped.append(path_id)
                continue

            index = len(arena.nodes)
            arena.nodes.append(node)
            arena.parents.append(parent)
            arena.path_ids.append(path_id)

            details = node.organization_details
            if node.is_organization and details is not None:
                children = list(enumerate(details.sub_owners))
                for i, child in reversed(children):
                    stack.append((child, index, f"{path_id}_{i}"))
        return arena


def for_each_owner(
    root_owners: Sequence[OwnershipNode],
    visit: Callable[[OwnershipNode, str], None],
) -> list[str]:
    """Call ``visit(node, path_id)`` for every owner in pre-order.

    Returns the path ids of subtrees skipped because of cyclic data.
    """
    arena = OwnershipArena.build(root_owners)
    for node, path_id in zip(arena.nodes, arena.path_ids):
        visit(node, path_id)
    return arena.skipped


def dedup_key(target: CheckTarget) -> str:
    """Form under which a target counts as already checked.

    Case, punctuation and spacing differences do not make a second lookup.
    """
    return normalize_name(target.key) or target.key


@dataclass
class OwnershipWalk:
    """Checkable targets of an entity, plus any subtrees that were skipped."""
    targets: list[CheckTarget] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    _seen: set = field(default_factory=set, repr=False)

    def add_name(self, value: Optional[str]) -> None:
        if value and value.strip():
            self._add(CheckTarget(key=transliterate(value), raw=value, kind="name"))

    def add_identifier(self, value: Optional[str]) -> None:
        # Identifiers are compared exactly, never transliterated
        if value and value.strip():
            self._add(CheckTarget(key=value.strip(), raw=value, kind="identifier"))

    def _add(self, target: CheckTarget) -> None:
        key = dedup_key(target)
        if key and key not in self._seen:
            self._seen.add(key)
            self.targets.append(target)


def walk_ownership(entity: Entity) -> OwnershipWalk:
    """Collect the entity's own fields, then every owner's, depth-first."""
    walk = OwnershipWalk()
    walk.add_name(entity.name)
    walk.add_identifier(entity.tax_id)
    walk.add_name(entity.executive_name)

    def visit(node: OwnershipNode, path_id: str) -> None:
        walk.add_name(node.display_name)
        walk.add_identifier(node.owner_identifier)
        details = node.organization_details
        if node.is_organization and details is not None:
            walk.add_name(details.name)
            walk.add_identifier(details.tax_id)
            walk.add_name(details.executive_name)

    walk.skipped = for_each_owner(entity.owners, visit)
    return walk


def collect_check_targets(entity: Entity) -> list[CheckTarget]:
    """Ordered, de-duplicated names and identifiers to screen."""
    return walk_ownership(entity).targets


def collect_checkable_entities(entity: Entity) -> set[str]:
    """Result keys for every checkable name and identifier of ``entity``."""
    return {target.key for target in collect_check_targets(entity)}
