"""Theme tree construction from flat path strings.

The tree is never stored: callers rebuild it from the current theme list
whenever they need one, so it cannot go stale after a rename or delete.
"""

from __future__ import annotations

from typing import Iterable, Literal

from notedash.themes import paths
from notedash.themes.models import Theme, ThemeTreeNode

SelectionState = Literal["checked", "unchecked", "indeterminate"]


def build_tree(themes: Iterable[Theme]) -> list[ThemeTreeNode]:
    """Group themes under the theme whose path is their parent path.

    A theme whose parent path has no theme of its own becomes a root.
    Input order is preserved among siblings.
    """
    nodes: list[ThemeTreeNode] = []
    by_path: dict[str, ThemeTreeNode] = {}
    seen_ids: set[str] = set()
    for theme in themes:
        if theme.id in seen_ids:
            continue
        seen_ids.add(theme.id)
        node = ThemeTreeNode(theme=theme)
        nodes.append(node)
        by_path.setdefault(theme.path, node)

    roots: list[ThemeTreeNode] = []
    for node in nodes:
        parent_path = paths.parent_of(node.theme.path)
        parent = by_path.get(parent_path) if parent_path is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    _assign_levels(roots, 0)
    return roots


def find_node(tree: list[ThemeTreeNode], theme_id: str) -> ThemeTreeNode | None:
    for node in tree:
        if node.theme.id == theme_id:
            return node
        found = find_node(node.children, theme_id)
        if found is not None:
            return found
    return None


def descendant_ids(node: ThemeTreeNode) -> list[str]:
    """The node's own id followed by every id in its subtree, pre-order."""
    ids = [node.theme.id]
    for child in node.children:
        ids.extend(descendant_ids(child))
    return ids


def flatten(tree: list[ThemeTreeNode]) -> list[ThemeTreeNode]:
    result: list[ThemeTreeNode] = []
    for node in tree:
        result.append(node)
        result.extend(flatten(node.children))
    return result


def group_by_status(tree: list[ThemeTreeNode]) -> tuple[list[ThemeTreeNode], list[ThemeTreeNode]]:
    """Split root nodes into (active, archived)."""
    active = [node for node in tree if node.theme.is_active]
    archived = [node for node in tree if not node.theme.is_active]
    return active, archived


def selection_state(
    theme_id: str, tree: list[ThemeTreeNode], selected: set[str]
) -> SelectionState:
    node = find_node(tree, theme_id)
    if node is None:
        return "unchecked"
    if theme_id in selected:
        return "checked"
    if any(node_id in selected for node_id in descendant_ids(node)):
        return "indeterminate"
    return "unchecked"


def toggle_selection(
    theme_id: str,
    tree: list[ThemeTreeNode],
    selected: set[str],
    *,
    include_children: bool = True,
) -> set[str]:
    """Return a new selection with the theme (and optionally its subtree) toggled."""
    next_selection = set(selected)
    node = find_node(tree, theme_id)
    if node is None:
        return next_selection
    targets = descendant_ids(node) if include_children else [theme_id]
    if theme_id in next_selection:
        next_selection.difference_update(targets)
    else:
        next_selection.update(targets)
    return next_selection


def _assign_levels(nodes: list[ThemeTreeNode], level: int) -> None:
    for node in nodes:
        node.level = level
        _assign_levels(node.children, level + 1)
