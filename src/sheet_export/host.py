"""Host-side seams: what the exporter needs from actors and tokens.

In Foundry these are the Actor and TokenDocument classes of the RMU system.
LocalActor is a JSON-file backed actor used by the command line tool and the
tests; it implements the same persistence calls the import path relies on.
"""

import copy
import json
import logging
import secrets
import string
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

logger = logging.getLogger(__name__)

ITEM = "Item"
ACTIVE_EFFECT = "ActiveEffect"


class TokenLike(Protocol):
    """A token that can run the rules engine's HUD derivation."""

    actor: Any

    async def derive_extended_data(self) -> None: ...

    @property
    def dodge_options(self) -> Any: ...

    @property
    def block_options(self) -> Any: ...


class PersistentActor(Protocol):
    """The persistence API used by the import reconciler."""

    name: str
    type: str

    @property
    def items(self) -> Sequence[Any]: ...

    @property
    def effects(self) -> Sequence[Any]: ...

    async def update(self, data: Dict[str, Any]) -> None: ...

    async def delete_embedded_documents(self, document_name: str, ids: List[str]) -> None: ...

    async def create_embedded_documents(self, document_name: str, data: List[Dict[str, Any]]) -> None: ...


def generate_document_id() -> str:
    """16 character alphanumeric id, as Foundry generates for documents."""
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(16))


def document_id(document: Any) -> Optional[str]:
    if isinstance(document, dict):
        return document.get("_id") or document.get("id")
    return getattr(document, "id", None) or getattr(document, "_id", None)


def _merge(target: Dict[str, Any], changes: Dict[str, Any]) -> None:
    """Recursive update, matching how Foundry applies an update object."""
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


class LocalActor:
    """Actor backed by a Foundry actor JSON document."""

    def __init__(self, data: Dict[str, Any], path: Optional[Path] = None):
        self.data = data
        self.path = path
        self.data.setdefault("items", [])
        self.data.setdefault("effects", [])

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "LocalActor":
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls(data, path=path)

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the actor back to disk (its source file by default)."""
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("LocalActor has no file path to save to")
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(self.data, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved actor '{self.name}' to {target}")
        return target

    @property
    def id(self) -> Optional[str]:
        return self.data.get("_id")

    @property
    def name(self) -> str:
        return self.data.get("name", "")

    @property
    def type(self) -> str:
        return self.data.get("type", "")

    @property
    def img(self) -> Optional[str]:
        return self.data.get("img")

    @property
    def system(self) -> Dict[str, Any]:
        return self.data.setdefault("system", {})

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self.data["items"]

    @property
    def effects(self) -> List[Dict[str, Any]]:
        return self.data["effects"]

    @property
    def prototype_token(self) -> Dict[str, Any]:
        return self.data.get("prototypeToken") or {}

    def to_object(self) -> Dict[str, Any]:
        """Deep copy of the stored source data."""
        return copy.deepcopy(self.data)

    def _collection(self, document_name: str) -> List[Dict[str, Any]]:
        if document_name == ITEM:
            return self.items
        if document_name == ACTIVE_EFFECT:
            return self.effects
        raise ValueError(f"Unknown embedded document type: {document_name}")

    async def update(self, data: Dict[str, Any]) -> None:
        _merge(self.data, data)

    async def delete_embedded_documents(self, document_name: str, ids: List[str]) -> None:
        doomed = set(ids)
        collection = self._collection(document_name)
        collection[:] = [doc for doc in collection if document_id(doc) not in doomed]

    async def create_embedded_documents(self, document_name: str, data: List[Dict[str, Any]]) -> None:
        collection = self._collection(document_name)
        existing = {document_id(doc) for doc in collection}
        for doc in data:
            doc = copy.deepcopy(doc)
            if not doc.get("_id") or doc["_id"] in existing:
                doc["_id"] = generate_document_id()
            existing.add(doc["_id"])
            collection.append(doc)
