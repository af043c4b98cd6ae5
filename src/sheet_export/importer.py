"""Restore an actor from the backup embedded in an exported HTML sheet.

The import is a destructive replace: every embedded item and effect on the
target actor is deleted, the remaining fields are applied as an update, and
the backup's items and effects are created anew. There is no rollback; a
failure part-way through leaves the actor partially restored.
"""

import copy
import json
import logging
from typing import Any, Dict, List

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict

from exceptions import MissingBackupData, ReconciliationFailure, TypeMismatch

from .host import ACTIVE_EFFECT, ITEM, PersistentActor, document_id
from .output import BACKUP_ELEMENT_ID

logger = logging.getLogger(__name__)

# Top-level keys that tie a document to one world and must not be imported
IDENTITY_KEYS = ("_id", "folder", "ownership", "sort")


class ImportResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    actor_name: str
    actor_type: str
    items_removed: int = 0
    effects_removed: int = 0
    items_created: int = 0
    effects_created: int = 0


def parse_artifact(text: str) -> Dict[str, Any]:
    """
    Extract the actor backup from an exported HTML sheet.

    Args:
        text: Full HTML artifact text

    Returns:
        The embedded actor source data

    Raises:
        MissingBackupData: If the backup block is absent or not a JSON object
    """
    soup = BeautifulSoup(text, "html.parser")
    element = soup.find(id=BACKUP_ELEMENT_ID)
    if element is None:
        raise MissingBackupData(f"Could not find embedded actor data (#{BACKUP_ELEMENT_ID}) in this file")

    try:
        payload = json.loads(element.get_text())
    except json.JSONDecodeError as e:
        raise MissingBackupData(f"Embedded actor data is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MissingBackupData("Embedded actor data is not an actor document")
    return payload


def prepare_update(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of payload without world-specific identity and ownership metadata."""
    update = copy.deepcopy(payload)
    for key in IDENTITY_KEYS:
        update.pop(key, None)

    flags = update.get("flags")
    if isinstance(flags, dict):
        flags.pop("core", None)

    prototype_token = update.get("prototypeToken")
    if isinstance(prototype_token, dict):
        prototype_token.pop("actorId", None)

    return update


def _ids(documents: Any) -> List[str]:
    return [doc_id for doc_id in (document_id(doc) for doc in documents or []) if doc_id]


async def reconcile(actor: PersistentActor, payload: Dict[str, Any]) -> ImportResult:
    """
    Replace an actor's data with an imported backup.

    Args:
        actor: Target actor (persistence API as in host.PersistentActor)
        payload: Backup returned by parse_artifact()

    Returns:
        ImportResult with the counts of removed and created documents

    Raises:
        TypeMismatch: If the backup's type differs from the actor's (case-sensitive);
            the actor is not modified
        ReconciliationFailure: If any persistence call failed; the actor may be
            partially updated
    """
    source_type = payload.get("type")
    if source_type != actor.type:
        raise TypeMismatch(source_type, actor.type)

    update = prepare_update(payload)
    items_to_create = update.pop("items", None) or []
    effects_to_create = update.pop("effects", None) or []

    try:
        item_ids = _ids(actor.items)
        effect_ids = _ids(actor.effects)

        # Deletions finish before anything is recreated so ids cannot collide
        if item_ids:
            await actor.delete_embedded_documents(ITEM, item_ids)
        if effect_ids:
            await actor.delete_embedded_documents(ACTIVE_EFFECT, effect_ids)

        await actor.update(update)

        if items_to_create:
            await actor.create_embedded_documents(ITEM, items_to_create)
        if effects_to_create:
            await actor.create_embedded_documents(ACTIVE_EFFECT, effects_to_create)
    except Exception as e:
        logger.error(f"Import into '{actor.name}' failed part-way: {e}")
        raise ReconciliationFailure(f"Import into '{actor.name}' failed: {e}") from e

    logger.info(
        f"Restored '{actor.name}': {len(items_to_create)} items, {len(effects_to_create)} effects"
    )
    return ImportResult(
        actor_name=actor.name,
        actor_type=actor.type,
        items_removed=len(item_ids),
        effects_removed=len(effect_ids),
        items_created=len(items_to_create),
        effects_created=len(effects_to_create),
    )
