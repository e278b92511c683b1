"""Resource tree: lineage queries and cycle-safe reparenting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._errors import CycleError, DanglingParentError, NotFoundError, SelfParentError
from ._store import ResourceStore

if TYPE_CHECKING:
    from ._models import Resource
    from ._store import Database

logger = logging.getLogger(__name__)


def walk_lineage(resources: ResourceStore, resource_id: int) -> list[int]:
    """Collect the ancestors of a resource, root first.

    The walk starts at the immediate parent and follows parent edges until a
    root. Visited ids are tracked so a corrupted (cyclic) parent chain ends
    the walk instead of looping forever; the resource itself is never part
    of the result.

    Args:
        resources: Store bound to the current transaction.
        resource_id: The resource whose lineage to compute.

    Returns:
        Ancestor ids ordered from the root to the immediate parent.

    """
    chain: list[int] = []
    visited = {resource_id}
    current = resources.parent_of(resource_id)
    while current is not None:
        if current in visited:
            logger.warning("Parent chain of resource %d revisits resource %d; stopping walk", resource_id, current)
            break
        visited.add(current)
        chain.append(current)
        current = resources.parent_of(current)
    chain.reverse()
    return chain


def is_ancestor(resources: ResourceStore, candidate_id: int, resource_id: int) -> bool:
    """Check if `candidate_id` appears in the lineage of `resource_id`."""
    return candidate_id in walk_lineage(resources, resource_id)


class ResourceTree:
    """Maintains the parent edges of the resource forest.

    The forest invariant (no resource is its own ancestor) is enforced when
    edges change: `create_resource` only attaches to existing parents and
    `reparent` rejects self-parenting and moves under a descendant. Each
    operation runs in a single transaction.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    def get_resource(self, resource_id: int) -> Resource:
        with self._database.transaction() as session:
            resource = ResourceStore(session).find(resource_id)
        if resource is None:
            raise NotFoundError("resource", resource_id)
        return resource

    def exists(self, resource_id: int) -> bool:
        with self._database.transaction() as session:
            return ResourceStore(session).exists(resource_id)

    def children(self, resource_id: int) -> list[int]:
        with self._database.transaction() as session:
            resources = ResourceStore(session)
            if not resources.exists(resource_id):
                raise NotFoundError("resource", resource_id)
            return resources.children(resource_id)

    def get_lineage(self, resource_id: int) -> list[int]:
        """Get the ancestry chain of a resource.

        Args:
            resource_id: The resource to query.

        Returns:
            Ancestor ids ordered from the root to the immediate parent;
            empty for a root resource.

        Raises:
            NotFoundError: If the resource does not exist.

        """
        with self._database.transaction() as session:
            resources = ResourceStore(session)
            if not resources.exists(resource_id):
                raise NotFoundError("resource", resource_id)
            lineage = walk_lineage(resources, resource_id)
        logger.debug("Lineage of resource %d: %s", resource_id, lineage)
        return lineage

    def create_resource(self, name: str, parent_id: int | None = None) -> int:
        """Create a resource, optionally under an existing parent.

        Args:
            name: Name of the new resource.
            parent_id: Id of the parent resource, or None for a new root.

        Returns:
            The id of the new resource.

        Raises:
            DanglingParentError: If `parent_id` does not reference an existing resource.

        """
        with self._database.transaction() as session:
            resources = ResourceStore(session)
            if parent_id is not None and not resources.exists(parent_id):
                raise DanglingParentError(parent_id)
            resource = resources.create(name, parent_id)
        logger.debug("Created resource %d (%s) under %s", resource.id, name, parent_id)
        return resource.id

    def reparent(self, resource_id: int, new_parent_id: int) -> None:
        """Move a resource under a new parent.

        Checks run in order and stop at the first failure; the edge is only
        written when all pass, inside the same transaction as the checks.

        Raises:
            NotFoundError: If the resource or the new parent does not exist.
            SelfParentError: If `resource_id == new_parent_id`.
            CycleError: If the new parent is a descendant of the resource.

        """
        with self._database.transaction() as session:
            resources = ResourceStore(session)
            if resources.find(resource_id, for_update=True) is None:
                raise NotFoundError("resource", resource_id)
            if not resources.exists(new_parent_id):
                raise NotFoundError("resource", new_parent_id)
            if resource_id == new_parent_id:
                raise SelfParentError(resource_id)
            if is_ancestor(resources, resource_id, new_parent_id):
                raise CycleError(resource_id, new_parent_id)
            resources.set_parent(resource_id, new_parent_id)
        logger.debug("Reparented resource %d under %d", resource_id, new_parent_id)
