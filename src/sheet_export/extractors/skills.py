"""Skill tree flattening, filtering and grouping.

RMU keeps skills in a tree of arbitrary depth: categories hold groups hold
skills, as dicts or lists depending on the release. A node is a skill (leaf)
when it carries `_canDevelop: true` itself, or when its `system` sub-object
does (an item wrapper). Every other mapping or list is a container.
"""

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..formatting import format_bonus, resolve_label, slugify_key
from ..models import ExportOptions, SectionKey, SkillGroup, SkillRow
from ..source import as_number, dig, first_present
from .base import ExtractionContext, ensure_context, section_guard

logger = logging.getLogger(__name__)

LEAF_MARKER = "_canDevelop"
WRAPPER_KEY = "system"
DEFAULT_CATEGORY = "General"


@dataclass(frozen=True)
class SkillLeaf:
    """Leaf of the skill tree; `data` is the unwrapped skill record."""

    data: Any
    wrapper: Any = None

    def get(self, *path: str) -> Any:
        value = dig(self.data, *path)
        if value is None and self.wrapper is not None:
            value = dig(self.wrapper, *path)
        return value


def probe_leaf(node: Any) -> Optional[SkillLeaf]:
    """Classify a node: a SkillLeaf for direct or wrapped skills, None for containers."""
    if dig(node, LEAF_MARKER) is True:
        return SkillLeaf(data=node)
    inner = dig(node, WRAPPER_KEY)
    if inner is not None and dig(inner, LEAF_MARKER) is True:
        return SkillLeaf(data=inner, wrapper=node)
    return None


def collect_skill_leaves(tree: Any) -> List[SkillLeaf]:
    """
    Depth-first walk returning every leaf exactly once.

    The wrapper key is skipped when descending into a container, so a
    wrapped leaf can never be reached a second time through its inner
    record. Nodes already seen (shared or cyclic references) are not
    visited again, and a skill record reached both bare and wrapped is
    counted once.
    """
    leaves: List[SkillLeaf] = []
    visited = set()
    stack = [tree]

    while stack:
        node = stack.pop()
        if node is None or isinstance(node, (str, bytes, int, float)):
            continue
        if id(node) in visited:
            continue
        visited.add(id(node))

        leaf = probe_leaf(node)
        if leaf is not None:
            # The same record can sit bare in one place and wrapped in another
            if leaf.data is node or id(leaf.data) not in visited:
                visited.add(id(leaf.data))
                leaves.append(leaf)
            continue

        if isinstance(node, Mapping):
            children = [value for key, value in node.items() if key != WRAPPER_KEY]
        elif isinstance(node, (list, tuple)):
            children = list(node)
        else:
            continue
        stack.extend(reversed(children))

    return leaves


def _skill_row(leaf: SkillLeaf) -> SkillRow:
    return SkillRow(
        name=str(leaf.get("name") or "Unknown"),
        specialisation=str(first_present(leaf.data, [("specialization",), ("specialisation",)], "")),
        ranks=as_number(leaf.get("_totalRanks")),
        bonus=format_bonus(as_number(first_present(leaf.data, [("_bonus",), ("bonus",)]))),
    )


def _is_shown(leaf: SkillLeaf, show_all: bool) -> bool:
    return show_all or as_number(leaf.get("_totalRanks")) > 0 or bool(leaf.get("favorite"))


def extract_skills(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[List[SkillGroup]]:
    """
    Skills grouped by category.

    Only ranked or favorite skills are kept unless show_all_skills is set.
    Entries are sorted by name, categories by their displayed name, and
    categories left empty by the filter are dropped.
    """
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.SKILLS, context):
        return None

    tree = dig(actor, "system", "_skills")
    if not tree:
        return []

    leaves = collect_skill_leaves(tree)
    logger.debug(f"Found {len(leaves)} skills in skill tree")

    grouped: Dict[str, List[SkillRow]] = defaultdict(list)
    for leaf in leaves:
        if not _is_shown(leaf, options.show_all_skills):
            continue
        category = str(leaf.get("category") or DEFAULT_CATEGORY)
        grouped[category].append(_skill_row(leaf))

    groups = []
    for category, rows in grouped.items():
        if not rows:
            continue
        label = resolve_label(context.localizer, f"RMU.SkillCategory.{slugify_key(category)}", category)
        groups.append(SkillGroup(
            category=label,
            entries=sorted(rows, key=lambda row: (row.name.lower(), row.specialisation.lower())),
        ))

    return sorted(groups, key=lambda group: group.category.lower())
