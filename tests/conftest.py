"""
Shared pytest fixtures for RMU sheet export tests.
"""

import copy
import json
import pytest
from pathlib import Path


def pytest_addoption(parser):
    """Add --full flag to run entire test suite"""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite (skip smoke-only mode)"
    )


def pytest_configure(config):
    """Configure test run based on flags"""
    if config.getoption("--full"):
        # Only clear the default marker expression, never an explicit -m
        if config.option.markexpr == "smoke or (not integration and not slow)":
            config.option.markexpr = ""


# Project root
PROJECT_ROOT = Path(__file__).parent.parent

FILRODEN = {
    "_id": "fIlr0d3nTh3B0ld1",
    "name": "Filroden the Bold",
    "type": "Character",
    "img": "icons/svg/mystery-man.svg",
    "folder": "k3yF0ld3r0000001",
    "sort": 100000,
    "ownership": {"default": 0, "gmUser000000001": 3},
    "flags": {
        "core": {"sheetClass": "rmu.RMUCharacterSheet"},
        "rmu": {"favoriteTab": "skills"},
    },
    "prototypeToken": {"name": "Filroden", "actorId": "fIlr0d3nTh3B0ld1", "actorLink": True},
    "_stats": {"systemVersion": "1.4.2"},
    "system": {
        "_hudInitialized": True,
        "experience": {"level": 3, "xp": 25000},
        "realm": "Channeling",
        "appearance": {
            "size": "Medium",
            "gender": "Male",
            "age": 34,
            "height": 70,
            "weight": 180,
            "hair": "Brown",
            "eyes": "Grey",
            "skin": "Fair",
        },
        "details": {"faith": "Aulë"},
        "biography": {"value": "<p>A wandering <b>dwarf</b> smith.</p>", "notes": "Owes the guild 40 gp"},
        "_statBlock": {
            "Ag": {"total": 5, "temp": 78, "potential": 90},
            "Co": {"total": 10, "temp": 91, "potential": 95},
            "Qu": {"total": -2, "temp": 45, "potential": 70},
        },
        "_resistanceBlock": {
            "_resistances": [
                {"name": "Channeling Resistance", "total": 12},
                {"name": "Physical Resistance", "total": 0},
                {"name": "Fear Resistance", "total": -5},
            ]
        },
        "activeMovementName": "Running",
        "_movementBlock": {
            "_table": {
                "Running": {
                    "paceRates": [
                        {"pace": {"value": "Creep"}, "perRound": 12.5},
                        {"pace": {"value": "Walk"}, "perRound": 50},
                        {"pace": {"value": "Run"}, "perRound": 100},
                    ]
                }
            },
            "maxPaceForLoadLabel": "Run",
        },
        "_totalInitiativeBonus": 4,
        "health": {"hp": {"value": 42, "max": 50}, "power": {"value": 6, "max": 10}},
        "_injuryBlock": {
            "_endurance": {"_bonusWithRacial": 15},
            "_concentration": {"_bonusWithRacial": 0},
        },
        "_dbBlock": {
            "quicknessDB": 4,
            "armorDB": 3,
            "totalDB": 10,
            "dodgeOptions": [
                {"value": "passive", "modifier": 5},
                {"value": "partial", "modifier": 4},
                {"value": "full", "modifier": 8},
            ],
            "blockOptions": [
                {"value": "passive", "modifier": 3},
                {"value": "partial", "modifier": 2},
                {"value": "full", "modifier": 6},
            ],
        },
        "defense": {"other": 3},
        "defenses": {"shield": {"bonus": 2}},
        "_armorWorn": {
            "Torso": {"piece": {"_base": {"material": "Rigid Leather"}}, "AT": 7},
            "Head": {"piece": {"name": "Leather Cap"}, "AT": 3},
        },
        "_attacks": [
            {
                "attackName": "Broadsword",
                "specialization": "Long Blades",
                "handed": "1H",
                "totalBonus": 35,
                "chart": {"name": "Slash"},
                "fumble": 3,
                "meleeRange": 5,
                "isRanged": False,
            },
            {
                "attackName": "Short Bow",
                "specialization": "Bows",
                "handed": "2H",
                "totalBonus": 20,
                "chart": {"name": "Puncture"},
                "fumble": 4,
                "isRanged": True,
                "usage": {"range": {"short": 100}},
            },
        ],
        "_skills": {
            "Combat": {
                "Melee": [
                    {"name": "Long Blades", "category": "Combat", "_canDevelop": True, "_totalRanks": 5, "_bonus": 35},
                ]
            },
            "Athletic": {
                "Gymnastics": {
                    "system": {
                        "name": "Climbing",
                        "category": "Athletic",
                        "_canDevelop": True,
                        "_totalRanks": 2,
                        "_bonus": 12,
                    }
                }
            },
            "Lore": {
                "Knowledge": [
                    {"name": "Herb Lore", "category": "Lore", "_canDevelop": True, "_totalRanks": 0, "_bonus": -15},
                ]
            },
        },
        "_spells": [
            {
                "listType": "Open",
                "spellLists": [
                    {
                        "spellListName": "Nature's Lore",
                        "spells": [
                            {"name": "Nature's Awareness", "level": 1, "known": True},
                            {"name": "Herb Finding", "level": 2, "known": False},
                        ],
                    },
                    {
                        "spellListName": "Sound Control",
                        "spells": [{"name": "Silence", "level": 3, "known": False}],
                    },
                ],
            }
        ],
        "_inventory": [
            {"name": "Rope", "system": {"quantity": 1, "weight": 5}},
            {"name": "Torch", "system": {"quantity": 3, "_weight": {"weight": 1}}},
        ],
        "_loadAllowed": {"weight": 45},
        "_carriedWeight": {"weight": 32.5},
        "_encManeuverPenalty": -10,
    },
    "items": [
        {"_id": "race000000000001", "name": "Dwarf", "type": "race"},
        {"_id": "cult000000000001", "name": "Highlander", "type": "culture"},
        {"_id": "prof000000000001", "name": "Fighter", "type": "profession"},
        {"_id": "tale000000000001", "name": "Night Vision", "type": "talent",
         "system": {"category": "Senses", "tier": 1}},
        {"_id": "tale000000000002", "name": "Ambidextrous", "type": "talent",
         "system": {"category": "Combat", "tier": 2}},
        {"_id": "weap000000000001", "name": "Broadsword", "type": "weapon", "system": {"weight": 5}},
    ],
    "effects": [
        {"_id": "effe000000000001", "name": "Blessed", "changes": []},
    ],
}


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def filroden_data():
    """Fresh copy of a derived RMU character record."""
    return copy.deepcopy(FILRODEN)


@pytest.fixture
def filroden(filroden_data):
    """Filroden as a LocalActor."""
    from sheet_export.host import LocalActor

    return LocalActor(filroden_data)


@pytest.fixture
def filroden_file(tmp_path, filroden_data):
    """Filroden written to an actor JSON file."""
    path = tmp_path / "filroden.json"
    path.write_text(json.dumps(filroden_data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def empty_character():
    """A character with none of the optional collections."""
    return {
        "_id": "empty00000000001",
        "name": "Nobody",
        "type": "Character",
        "system": {"_hudInitialized": True},
        "items": [],
        "effects": [],
    }


@pytest.fixture
def localizer():
    """Localization with a handful of RMU labels."""
    from sheet_export.localization import Localization

    return Localization({
        "RMU": {
            "Stat": {"Ag": "Agility", "Co": "Constitution"},
            "SkillCategory": {"Combat": "Combat Training"},
            "AttackTable": {"Slash": "Slash Table"},
            "TalentCategory": {"Senses": "Sensory"},
        },
        "RMU_EXPORT": {
            "Dialog": {"Title": "Export: {name}"},
            "Section": {"Skills": "Skills"},
        },
    })
