"""In-memory index of the portal's sidebar menu.

Aurion only sends the children of a menu entry when it is expanded, so the
tree is discovered piece by piece. Menu keeps every discovered node in one
flat ``id -> MenuNode`` index; parent/child links are stored as ids.
"""

from collections.abc import Iterator

from aurion.errors import PreconditionError
from aurion.logging import get_logger
from aurion.models import MenuNode

log = get_logger(__name__)


class Menu:
    """Flat index of the discovered menu nodes.

    Seeded with the two category roots the client navigates from (schooling
    and groups planning). Not thread-safe; one Menu belongs to one session.
    """

    def __init__(
        self,
        schooling_id: str,
        user_planning_id: str,
        groups_planning_id: str,
        language_code: int = 0,
    ) -> None:
        """Initialize the menu with its two unloaded roots.

        Args:
            schooling_id: Id of the schooling category (e.g. "submenu_291906").
            user_planning_id: Id of the personal planning leaf (e.g. "1_3").
            groups_planning_id: Id of the groups planning category.
            language_code: Aurion language code of the installation.
        """
        self.language_code = language_code
        self.schooling_id = schooling_id
        self.user_planning_id = user_planning_id
        self.groups_planning_id = groups_planning_id

        self._nodes: dict[str, MenuNode] = {}
        self.insert(MenuNode(id=schooling_id, name="Schooling"))
        self.insert(MenuNode(id=groups_planning_id, name="Groups"))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, node_id: str) -> MenuNode | None:
        return self._nodes.get(node_id)

    def is_loaded(self, node_id: str) -> bool:
        node = self._nodes.get(node_id)
        return node is not None and node.is_loaded

    def insert(self, node: MenuNode) -> None:
        """Register a node, replacing any node with the same id."""
        self._nodes[node.id] = node

    def add_child(self, parent_id: str, child: MenuNode) -> None:
        """Attach ``child`` under ``parent_id`` and register it.

        If the id is already indexed, the existing node (and whatever subtree
        was discovered under it) is kept and only re-linked under the parent.
        Attaching an id that is already a child of the parent does not add a
        second entry to the parent's child list.

        Raises:
            PreconditionError: If the parent is unknown.
        """
        parent = self._nodes.get(parent_id)
        if parent is None:
            raise PreconditionError(f"Menu node {parent_id} not found")

        node = self._nodes.get(child.id)
        if node is None:
            node = child
            self.insert(node)

        node.parent = parent_id
        if node.id not in parent.children:
            parent.children.append(node.id)
        log.debug("menu_node_added", parent=parent_id, node=node.id, name=node.name)

    def children(self, node_id: str) -> list[MenuNode]:
        """Return the ordered child nodes of ``node_id``.

        Raises:
            PreconditionError: If the node is unknown.
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise PreconditionError(f"Menu node {node_id} not found")
        return [self._nodes[child_id] for child_id in node.children]

    def path(self, node_id: str) -> list[MenuNode]:
        """Return the ancestry of a node, root first, the node itself last."""
        node = self._nodes.get(node_id)
        if node is None:
            raise PreconditionError(f"Menu node {node_id} not found")

        path = [node]
        while node.parent is not None:
            node = self._nodes[node.parent]
            path.append(node)
        path.reverse()
        return path

    def walk(self, node_id: str) -> Iterator[tuple[int, MenuNode]]:
        """Yield ``(depth, node)`` pairs depth-first, starting at ``node_id``."""
        node = self._nodes.get(node_id)
        if node is None:
            raise PreconditionError(f"Menu node {node_id} not found")

        stack = [(0, node)]
        while stack:
            depth, current = stack.pop()
            yield depth, current
            for child_id in reversed(current.children):
                stack.append((depth + 1, self._nodes[child_id]))
