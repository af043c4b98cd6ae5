"""Export options and the presentation-ready document model."""

from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from .formatting import Bonus
from .units import MeasurementSystem

Number = Union[int, float]

SCHEMA_VERSION = "2.0"


class SectionKey(str, Enum):
    """Independently toggleable slices of the sheet."""

    HEADER = "header"
    QUICK_INFO = "quick_info"
    STATS = "stats"
    RESISTANCES = "resistances"
    DEFENSES = "defenses"
    ATTACKS = "attacks"
    TALENTS = "talents"
    SKILLS = "skills"
    SPELLS = "spells"
    INVENTORY = "inventory"
    DETAILS = "details"


class OutputFormat(str, Enum):
    JSON = "json"
    HTML = "html"


# Actor types (lower-cased) that can be exported, and the sections each supports
SECTION_SUPPORT: Dict[str, FrozenSet[SectionKey]] = {
    "character": frozenset(SectionKey),
    "creature": frozenset({
        SectionKey.HEADER,
        SectionKey.QUICK_INFO,
        SectionKey.STATS,
        SectionKey.RESISTANCES,
        SectionKey.DEFENSES,
        SectionKey.ATTACKS,
        SectionKey.SKILLS,
        SectionKey.SPELLS,
    }),
}


def supported_sections(actor_type: Optional[str]) -> FrozenSet[SectionKey]:
    """Sections valid for an actor type (case-insensitive); empty if not exportable."""
    return SECTION_SUPPORT.get((actor_type or "").lower(), frozenset())


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "on", "1", "yes")
    return bool(value)


class ExportOptions(BaseModel):
    """Per-request export configuration. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    show_all_skills: bool = False
    section_enabled: Dict[SectionKey, bool] = Field(default_factory=dict)  # missing = enabled
    measurement_system: MeasurementSystem = MeasurementSystem.IMPERIAL
    layout_id: str = "standard"
    theme_id: str = "classic"
    include_portrait: bool = True

    def is_enabled(self, section: SectionKey, actor_type: Optional[str]) -> bool:
        """True if the user kept the section on and the actor type supports it."""
        if section not in supported_sections(actor_type):
            return False
        return self.section_enabled.get(section, True)

    @classmethod
    def from_form(
        cls,
        form: Mapping[str, Any],
        actor_type: Optional[str],
        measurement_system: Any = MeasurementSystem.IMPERIAL
    ) -> "ExportOptions":
        """
        Build options from submitted export dialog data.

        Args:
            form: Dialog values: layout_id, theme_id, skill_filter ("all" or
                "ranked"), sections ({section: bool}), include_portrait
            actor_type: Type of the actor being exported
            measurement_system: World setting, not chosen per export

        Returns:
            ExportOptions with unsupported sections forced off
        """
        supported = supported_sections(actor_type)
        requested = form.get("sections") or {}

        section_enabled = {}
        for section in SectionKey:
            wanted = _as_bool(requested.get(section.value, True))
            section_enabled[section] = wanted and section in supported

        return cls(
            show_all_skills=str(form.get("skill_filter", "ranked")).lower() == "all",
            section_enabled=section_enabled,
            measurement_system=MeasurementSystem.coerce(measurement_system),
            layout_id=form.get("layout_id") or "standard",
            theme_id=form.get("theme_id") or "classic",
            include_portrait=_as_bool(form.get("include_portrait", True)),
        )


class Section(BaseModel):
    model_config = ConfigDict(frozen=True)


class HeaderSection(Section):
    name: str = "Unknown"
    race: str = "Unknown"
    culture: str = "Unknown"
    profession: str = "Unknown"
    level: Number = 1
    experience: Number = 0
    realm: str = "None"
    size: str = "Unknown"
    portrait: Optional[str] = None  # data URI, filled in by the orchestrator


class Pool(Section):
    current: Number = 0
    max: Number = 0


class QuickInfoSection(Section):
    bmr_value: str = "0'/rd"
    bmr_mode: str = "Running"
    initiative: Bonus = 0
    hits: Pool = Field(default_factory=Pool)
    endurance_physical: Bonus = 0
    endurance_mental: Bonus = 0
    power: Pool = Field(default_factory=Pool)


class StatRow(Section):
    key: str
    label: str
    bonus: Bonus = 0
    temporary: Optional[Number] = None
    potential: Optional[Number] = None


class ResistanceRow(Section):
    label: str
    bonus: Bonus = 0


class TacticalRow(Section):
    mode: str
    dodge: Bonus
    block: Bonus


class ArmorPiece(Section):
    name: str = "Unknown"
    at: Number = 0


class ArmorSummary(Section):
    head: ArmorPiece = Field(default_factory=ArmorPiece)
    torso: ArmorPiece = Field(default_factory=ArmorPiece)
    arms: ArmorPiece = Field(default_factory=ArmorPiece)
    legs: ArmorPiece = Field(default_factory=ArmorPiece)


class DefensesSection(Section):
    quickness_bonus: Bonus = 0
    armor_db: Bonus = 0
    other_db: Bonus = 0
    shield_bonus: Bonus = 0
    total_db_current: Bonus = 0
    tactical: List[TacticalRow] = Field(default_factory=list)
    armor: ArmorSummary = Field(default_factory=ArmorSummary)


class AttackRow(Section):
    name: str
    specialization: str = "Unknown"
    handed: str = ""
    ob: Bonus = 0
    damage_type: str = "Unknown"
    fumble: Number = 0
    reach: str = ""
    range: str = ""


class TalentEntry(Section):
    name: str
    tier: Union[str, Number] = ""


class TalentGroup(Section):
    group: str
    entries: List[TalentEntry] = Field(default_factory=list)


class SkillRow(Section):
    name: str
    specialisation: str = ""
    ranks: Number = 0
    bonus: Bonus = 0


class SkillGroup(Section):
    category: str
    entries: List[SkillRow] = Field(default_factory=list)


class SpellRow(Section):
    name: str
    level: Optional[Number] = None


class SpellGroup(Section):
    list_name: str
    type: str
    spells: List[SpellRow] = Field(default_factory=list)


class InventoryItem(Section):
    name: str
    qty: Number = 1
    weight: str = "0 lbs"


class InventorySection(Section):
    weight_allowance: str = "0 lbs"
    weight_carried: str = "0 lbs"
    enc_penalty: Bonus = 0
    max_pace: str = "Dash"
    items: List[InventoryItem] = Field(default_factory=list)


class DetailsSection(Section):
    gender: str = ""
    age: str = ""
    height: str = ""
    weight: str = ""
    hair: str = ""
    eyes: str = ""
    skin: str = ""
    faith: str = ""
    biography: str = ""
    notes: str = ""


class DocumentMeta(Section):
    timestamp: str
    system_version: str = "Unknown"
    module_version: str = "Unknown"
    schema_version: str = SCHEMA_VERSION


class UnifiedDocument(BaseModel):
    """Everything the output assembler needs; it never reads the actor itself."""

    model_config = ConfigDict(frozen=True)

    header: Optional[HeaderSection] = None
    quick_info: Optional[QuickInfoSection] = None
    stats: Optional[List[StatRow]] = None
    resistances: Optional[List[ResistanceRow]] = None
    defenses: Optional[DefensesSection] = None
    attacks: Optional[List[AttackRow]] = None
    talents: Optional[List[TalentGroup]] = None
    skill_groups: Optional[List[SkillGroup]] = None
    spells: Optional[List[SpellGroup]] = None
    inventory: Optional[InventorySection] = None
    details: Optional[DetailsSection] = None
    meta: DocumentMeta

    @property
    def subject_name(self) -> str:
        return self.header.name if self.header else "Character"

    def to_data(self) -> Dict[str, Any]:
        """JSON-ready dict; disabled sections are omitted rather than null."""
        return self.model_dump(mode="json", exclude_none=True)
