"""
Category tree utilities for the metadata document.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from merchant_sync.core.utils import to_list


CATEGORY_PATH_SEPARATOR = " > "


@dataclass
class CategoryNode:
    """
    Represents a category in the metadata tree.

    Attributes:
        id: Category ID (may be missing on grouping nodes)
        name: Category name (trimmed, may be empty)
        children: List of child CategoryNode objects
        level: Depth level (0 = root)
        trail: Names of this node and its named ancestors, root first
    """
    id: Optional[str]
    name: str
    children: List["CategoryNode"] = field(default_factory=list)
    level: int = 0
    trail: List[str] = field(default_factory=list)

    @property
    def full_path(self) -> str:
        if self.trail:
            return CATEGORY_PATH_SEPARATOR.join(self.trail)
        return self.name or (self.id or "")

    def __repr__(self):
        return f"CategoryNode(id={self.id}, name='{self.name}', level={self.level})"


def build_category_tree(raw_categories: Any) -> List[CategoryNode]:
    """
    Build CategoryNode trees from parsed `<category>` mappings.

    Args:
        raw_categories: A mapping or list of mappings; each may carry
                        `id`, `name` and nested `category` children.

    Returns:
        List of root CategoryNode objects with level/trail populated.
    """
    def build(raw: Any, level: int, parent_trail: List[str]) -> Optional[CategoryNode]:
        if not isinstance(raw, dict):
            return None
        name = str(raw.get("name") or "").strip()
        raw_id = raw.get("id")
        trail = parent_trail + [name] if name else list(parent_trail)
        node = CategoryNode(
            id=str(raw_id) if raw_id else None,
            name=name,
            level=level,
            trail=trail,
        )
        for child in to_list(raw.get("category")):
            child_node = build(child, level + 1, trail)
            if child_node:
                node.children.append(child_node)
        return node

    roots = []
    for raw in to_list(raw_categories):
        root = build(raw, 0, [])
        if root:
            roots.append(root)
    return roots


def flatten_tree(roots: List[CategoryNode]) -> List[CategoryNode]:
    """
    Flatten a category tree into a depth-first ordered list.
    """
    result: List[CategoryNode] = []

    def traverse(node: CategoryNode):
        result.append(node)
        for child in node.children:
            traverse(child)

    for root in roots:
        traverse(root)

    return result


def build_category_path_map(roots: List[CategoryNode]) -> Dict[str, str]:
    """
    Map every category id to its human-readable path ("Apparel > T-Shirts").
    """
    return {node.id: node.full_path for node in flatten_tree(roots) if node.id}
