"""Section extractors: one per sheet section, each tolerant of missing sub-trees."""

from typing import Any, Callable, NamedTuple

from ..models import (
    DefensesSection,
    DetailsSection,
    HeaderSection,
    InventorySection,
    QuickInfoSection,
    SectionKey,
)
from .attacks import extract_attacks
from .base import ExtractionContext, run_extractor
from .defenses import extract_defenses
from .header import extract_details, extract_header
from .inventory import extract_inventory
from .quick_info import extract_quick_info
from .skills import collect_skill_leaves, extract_skills
from .spells import extract_spells
from .stats import extract_resistances, extract_stats
from .talents import extract_talents


class SectionSpec(NamedTuple):
    key: SectionKey
    field: str  # UnifiedDocument attribute
    extract: Callable[..., Any]
    zero_value: Callable[[], Any]


# Document order
SECTIONS = (
    SectionSpec(SectionKey.HEADER, "header", extract_header, HeaderSection),
    SectionSpec(SectionKey.QUICK_INFO, "quick_info", extract_quick_info, QuickInfoSection),
    SectionSpec(SectionKey.STATS, "stats", extract_stats, list),
    SectionSpec(SectionKey.RESISTANCES, "resistances", extract_resistances, list),
    SectionSpec(SectionKey.DEFENSES, "defenses", extract_defenses, DefensesSection),
    SectionSpec(SectionKey.ATTACKS, "attacks", extract_attacks, list),
    SectionSpec(SectionKey.TALENTS, "talents", extract_talents, list),
    SectionSpec(SectionKey.SKILLS, "skill_groups", extract_skills, list),
    SectionSpec(SectionKey.SPELLS, "spells", extract_spells, list),
    SectionSpec(SectionKey.INVENTORY, "inventory", extract_inventory, InventorySection),
    SectionSpec(SectionKey.DETAILS, "details", extract_details, DetailsSection),
)

__all__ = [
    "ExtractionContext",
    "SECTIONS",
    "SectionSpec",
    "collect_skill_leaves",
    "extract_attacks",
    "extract_defenses",
    "extract_details",
    "extract_header",
    "extract_inventory",
    "extract_quick_info",
    "extract_resistances",
    "extract_skills",
    "extract_spells",
    "extract_stats",
    "extract_talents",
    "run_extractor",
]
