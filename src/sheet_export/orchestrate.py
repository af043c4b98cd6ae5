"""Build the unified sheet document from an actor.

Pipeline:
1. Make the rules engine materialize derived data (skills, attacks, spells,
   defensive options), through a token if one exists or can be made
2. Run every enabled section extractor against the settled actor
3. Inline the portrait as a data URI
4. Attach generation metadata

Every step degrades instead of failing: a sheet built from partial data is
still useful to the player.
"""

import asyncio
import base64
import copy
import inspect
import logging
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import urljoin

import httpx

from config import get_foundry_url
from exceptions import AssetFetchFailure, DerivationFailure

from . import __version__
from .extractors import SECTIONS, ExtractionContext, run_extractor
from .localization import Localizer, NullLocalizer
from .models import DocumentMeta, ExportOptions, UnifiedDocument
from .source import dig

logger = logging.getLogger(__name__)

NO_PORTRAIT = "icons/svg/mystery-man.svg"

# (token_data, actor) -> token document bound to the actor
TokenFactory = Callable[[Dict[str, Any], Any], Any]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _prototype_token_data(actor: Any) -> Dict[str, Any]:
    prototype = dig(actor, "prototype_token") or dig(actor, "prototypeToken") or {}
    to_object = getattr(prototype, "to_object", None)
    if callable(to_object):
        return to_object()
    return copy.deepcopy(dict(prototype))


def find_token(actor: Any, token_factory: Optional[TokenFactory] = None) -> Any:
    """
    Locate a token to run derivation on.

    Order: the actor's own token (opened from the canvas), the first active
    token on the scene, then an ephemeral token built from the prototype
    token and linked to the actor.
    """
    token = dig(actor, "token")
    if token is not None:
        return token

    get_active_tokens = getattr(actor, "get_active_tokens", None)
    if callable(get_active_tokens):
        tokens = list(get_active_tokens() or [])
        if tokens:
            return getattr(tokens[0], "document", None) or tokens[0]

    if token_factory is None:
        return None

    try:
        token_data = _prototype_token_data(actor)
        token_data["actorId"] = dig(actor, "id")
        token_data["actorLink"] = True
        token = token_factory(token_data, actor)
        if getattr(token, "actor", None) is None:
            token.actor = actor
        logger.debug(f"Created ephemeral token for '{dig(actor, 'name')}'")
        return token
    except Exception as e:
        logger.warning(f"Failed to create ephemeral token: {e}")
        return None


async def _derive_with_token(token: Any, actor: Any, context: ExtractionContext) -> None:
    """
    Run the HUD derivation and snapshot the lazily computed defensive options.

    Raises:
        DerivationFailure: If the rules engine raised during derivation
    """
    try:
        await _maybe_await(token.derive_extended_data())
        context.actor = getattr(token, "actor", None) or actor
        context.dodge_options = getattr(token, "dodge_options", None)
        context.block_options = getattr(token, "block_options", None)
    except Exception as e:
        raise DerivationFailure(f"HUD derivation failed for '{dig(actor, 'name')}': {e}") from e


async def ensure_derived_data(
    actor: Any,
    localizer: Optional[Localizer] = None,
    token_factory: Optional[TokenFactory] = None
) -> ExtractionContext:
    """
    Make sure the actor's derived fields exist before extraction.

    Args:
        actor: Actor to prepare
        localizer: Label resolver handed on to the extractors
        token_factory: Host hook that builds an in-memory token for actors
            without one

    Returns:
        ExtractionContext pointing at the actor that holds the derived data.
        context.derived is False when only the fallback paths ran.
    """
    context = ExtractionContext(actor=actor, localizer=localizer or NullLocalizer())

    if dig(actor, "system", "_hudInitialized"):
        context.derived = True
        return context

    token = find_token(actor, token_factory)
    if token is not None and callable(getattr(token, "derive_extended_data", None)):
        try:
            await _derive_with_token(token, actor, context)
            context.derived = True
            logger.info(f"Derived extended data for '{dig(actor, 'name')}'")
            return context
        except DerivationFailure as e:
            context.warn(str(e))

    prepare_data = getattr(actor, "prepare_data", None)
    if callable(prepare_data):
        try:
            await _maybe_await(prepare_data())
        except Exception as e:
            context.warn(f"Data preparation failed, exporting raw data: {e}")
    return context


def _data_uri(content: bytes, mime_type: Optional[str]) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type or 'application/octet-stream'};base64,{encoded}"


async def fetch_portrait(
    img: Optional[str],
    http_client: Optional[httpx.AsyncClient] = None,
    base_url: Optional[str] = None
) -> Optional[str]:
    """
    Load the actor portrait as a data URI.

    Args:
        img: Portrait path: local file, URL, or path relative to the Foundry server
        http_client: Optional shared client (a new one is used otherwise)
        base_url: Server URL for relative paths (default: FOUNDRY_URL)

    Returns:
        Data URI, or None when the actor has no portrait

    Raises:
        AssetFetchFailure: If the image could not be read or downloaded
    """
    if not img or img == NO_PORTRAIT:
        return None
    if img.startswith("data:"):
        return img

    mime_type, _ = mimetypes.guess_type(img)
    local_path = Path(img)
    if local_path.is_file():
        try:
            content = await asyncio.to_thread(local_path.read_bytes)
        except OSError as e:
            raise AssetFetchFailure(f"Failed to read portrait '{img}': {e}") from e
        return _data_uri(content, mime_type)

    url = img if img.startswith(("http://", "https://")) else urljoin(
        (base_url or get_foundry_url()).rstrip("/") + "/", img.lstrip("/")
    )
    logger.debug(f"Fetching portrait {url}")

    try:
        if http_client is not None:
            response = await http_client.get(url, timeout=30.0)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, timeout=30.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise AssetFetchFailure(f"Failed to fetch portrait '{url}': {e}") from e

    content_type = response.headers.get("content-type", "").split(";")[0].strip()
    return _data_uri(response.content, content_type or mime_type)


async def build_document(
    actor: Any,
    options: ExportOptions,
    localizer: Optional[Localizer] = None,
    *,
    token_factory: Optional[TokenFactory] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    system_version: Optional[str] = None
) -> UnifiedDocument:
    """
    Extract every enabled section of an actor into a UnifiedDocument.

    Derivation completes before any extractor runs. Extractors run in
    document order; a failing section falls back to its zero value.

    Args:
        actor: Source actor
        options: Export options for this request
        localizer: Label resolver (labels fall back to raw values without one)
        token_factory: Host hook for building an ephemeral token
        http_client: Client used for the portrait download
        system_version: Version of the RMU system that produced the actor

    Returns:
        UnifiedDocument (never raises for missing or malformed actor data)
    """
    context = await ensure_derived_data(actor, localizer, token_factory)
    source = context.actor

    sections: Dict[str, Any] = {}
    for entry in SECTIONS:
        sections[entry.field] = run_extractor(
            entry.key, entry.extract, entry.zero_value, source, options, context
        )

    header = sections.get("header")
    if header is not None and options.include_portrait:
        try:
            portrait = await fetch_portrait(dig(source, "img"), http_client)
        except AssetFetchFailure as e:
            context.warn(f"Portrait omitted: {e}")
            portrait = None
        if portrait:
            sections["header"] = header.model_copy(update={"portrait": portrait})

    meta = DocumentMeta(
        timestamp=datetime.now().isoformat(timespec="seconds"),
        system_version=system_version or "Unknown",
        module_version=__version__,
    )

    enabled = [name for name, value in sections.items() if value is not None]
    logger.info(f"Extracted {len(enabled)} sections for '{dig(source, 'name')}'")
    if context.warnings:
        logger.info(f"Export of '{dig(source, 'name')}' completed with {len(context.warnings)} warning(s)")

    return UnifiedDocument(**sections, meta=meta)
