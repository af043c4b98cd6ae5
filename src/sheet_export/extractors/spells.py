"""Known spells, grouped by spell list."""

from typing import Any, List, Optional

from ..formatting import probe_label, slugify_key
from ..localization import Localizer
from ..models import ExportOptions, SectionKey, SpellGroup, SpellRow
from ..source import as_list, as_number, dig, first_present
from .base import ExtractionContext, ensure_context, section_guard


def _localized(localizer: Optional[Localizer], prefix: str, raw: Any) -> str:
    if raw is None:
        return ""
    return probe_label(localizer, (f"RMU.{prefix}.{slugify_key(raw)}", str(raw)), raw)


def extract_spells(
    actor: Any,
    options: ExportOptions,
    context: Optional[ExtractionContext] = None
) -> Optional[List[SpellGroup]]:
    """
    Walk list type -> spell list -> spells, keeping known spells only.

    Lists without a known spell are dropped. List type, list name and each
    spell name are localized independently and fall back to the raw value.
    """
    context = ensure_context(actor, context)
    if not section_guard(options, SectionKey.SPELLS, context):
        return None

    localizer = context.localizer
    groups = []
    for type_group in as_list(dig(actor, "system", "_spells")):
        list_type = _localized(localizer, "SpellListType", dig(type_group, "listType"))

        for spell_list in as_list(dig(type_group, "spellLists")):
            known = [spell for spell in as_list(dig(spell_list, "spells")) if dig(spell, "known")]
            if not known:
                continue

            list_name = first_present(spell_list, [("spellListName",), ("name",)], "Unknown")
            groups.append(SpellGroup(
                list_name=_localized(localizer, "SpellList", list_name),
                type=list_type,
                spells=[
                    SpellRow(
                        name=_localized(localizer, "Spell", dig(spell, "name") or "Unknown"),
                        level=as_number(dig(spell, "level"), None),
                    )
                    for spell in known
                ],
            ))
    return groups
