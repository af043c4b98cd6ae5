"""Talents and traits grouped by category."""

from collections import defaultdict
from typing import Any, List, Optional

from ..formatting import resolve_label, slugify_key
from ..models import ExportOptions, SectionKey, TalentEntry, TalentGroup
from ..source import dig, find_items
from .base import ExtractionContext, ensure_context, section_guard

TALENT_TYPES = ("talent", "trait")


def extract_talents(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[List[TalentGroup]]:
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.TALENTS, context):
        return None

    grouped = defaultdict(list)
    for talent in find_items(actor, TALENT_TYPES):
        group = dig(talent, "system", "category") or "General"
        tier = dig(talent, "system", "tier")
        grouped[str(group)].append(TalentEntry(
            name=str(dig(talent, "name") or "Unknown"),
            tier="" if tier is None else tier,
        ))

    return [
        TalentGroup(
            group=resolve_label(context.localizer, f"RMU.TalentCategory.{slugify_key(group)}", group),
            entries=sorted(grouped[group], key=lambda entry: entry.name.lower()),
        )
        for group in sorted(grouped)
    ]
