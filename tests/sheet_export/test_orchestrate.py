"""Tests for derivation and document assembly."""

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from exceptions import AssetFetchFailure
from sheet_export import __version__
from sheet_export.models import ExportOptions, SectionKey
from sheet_export.orchestrate import build_document, ensure_derived_data, fetch_portrait, find_token

DODGE = [{"value": "passive", "modifier": 5}, {"value": "full", "modifier": 8}]
BLOCK = [{"value": "passive", "modifier": 3}, {"value": "full", "modifier": 6}]


def make_token(**kwargs):
    defaults = {
        "actor": None,
        "derive_extended_data": AsyncMock(),
        "dodge_options": DODGE,
        "block_options": BLOCK,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_actor(**kwargs):
    defaults = {
        "id": "actor00000000001",
        "name": "Filroden the Bold",
        "type": "Character",
        "img": None,
        "system": {},
        "items": [],
        "prototype_token": {"name": "Filroden", "width": 1},
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestFindToken:
    """Tests for the token probe order."""

    def test_own_token_first(self):
        token = make_token()
        actor = make_actor(token=token, get_active_tokens=MagicMock(return_value=[]))

        assert find_token(actor) is token
        actor.get_active_tokens.assert_not_called()

    def test_active_token_document(self):
        token = make_token()
        actor = make_actor(get_active_tokens=MagicMock(return_value=[SimpleNamespace(document=token)]))

        assert find_token(actor) is token

    def test_ephemeral_token_from_prototype(self):
        token = make_token()
        factory = MagicMock(return_value=token)
        actor = make_actor()

        assert find_token(actor, factory) is token

        token_data, passed_actor = factory.call_args[0]
        assert token_data["actorId"] == "actor00000000001"
        assert token_data["actorLink"] is True
        assert token_data["name"] == "Filroden"
        assert passed_actor is actor
        assert token.actor is actor

    def test_prototype_not_mutated(self):
        actor = make_actor()

        find_token(actor, MagicMock(return_value=make_token()))

        assert "actorId" not in actor.prototype_token

    def test_factory_failure_gives_none(self):
        factory = MagicMock(side_effect=RuntimeError("canvas not ready"))

        assert find_token(make_actor(), factory) is None

    def test_no_token_available(self):
        assert find_token(make_actor()) is None


class TestEnsureDerivedData:
    """Tests for forcing derivation before extraction."""

    @pytest.mark.asyncio
    async def test_already_initialized_skips_derivation(self):
        token = make_token()
        actor = make_actor(system={"_hudInitialized": True}, token=token)

        context = await ensure_derived_data(actor)

        assert context.derived is True
        token.derive_extended_data.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_derivation_snapshots_options(self):
        token = make_token()
        actor = make_actor(token=token)

        context = await ensure_derived_data(actor)

        token.derive_extended_data.assert_awaited_once()
        assert context.derived is True
        assert context.actor is actor
        assert context.dodge_options == DODGE
        assert context.block_options == BLOCK

    @pytest.mark.asyncio
    async def test_synthetic_actor_from_token_is_used(self):
        derived_actor = make_actor(name="Derived")
        token = make_token(actor=derived_actor)

        context = await ensure_derived_data(make_actor(token=token))

        assert context.actor is derived_actor

    @pytest.mark.asyncio
    async def test_derivation_failure_falls_back_to_prepare_data(self):
        token = make_token(derive_extended_data=AsyncMock(side_effect=RuntimeError("HUD crashed")))
        prepare_data = MagicMock(return_value=None)
        actor = make_actor(token=token, prepare_data=prepare_data)

        context = await ensure_derived_data(actor)

        prepare_data.assert_called_once()
        assert context.derived is False
        assert any("HUD crashed" in warning for warning in context.warnings)

    @pytest.mark.asyncio
    async def test_prepare_data_failure_is_a_warning(self):
        actor = make_actor(prepare_data=MagicMock(side_effect=ValueError("bad data")))

        context = await ensure_derived_data(actor)

        assert context.derived is False
        assert len(context.warnings) == 1


class TestFetchPortrait:
    """Tests for portrait inlining."""

    @pytest.mark.asyncio
    async def test_placeholder_is_skipped(self):
        assert await fetch_portrait("icons/svg/mystery-man.svg") is None
        assert await fetch_portrait(None) is None

    @pytest.mark.asyncio
    async def test_data_uri_passthrough(self):
        uri = "data:image/png;base64,AAAA"

        assert await fetch_portrait(uri) == uri

    @pytest.mark.asyncio
    async def test_local_file(self, tmp_path):
        image = tmp_path / "portrait.png"
        image.write_bytes(b"\x89PNG")

        result = await fetch_portrait(str(image))

        assert result == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode("ascii")

    @pytest.mark.asyncio
    async def test_relative_path_uses_server_url(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            result = await fetch_portrait("tokens/filroden.png", client, base_url="https://vtt.example.com/")

        assert seen == ["https://vtt.example.com/tokens/filroden.png"]
        assert result == "data:image/png;base64,iVBORw=="

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(AssetFetchFailure):
                await fetch_portrait("https://vtt.example.com/missing.png", client)


class TestBuildDocument:
    """Tests for the full extraction pipeline."""

    @pytest.mark.asyncio
    async def test_filroden_end_to_end(self, filroden):
        document = await build_document(filroden, ExportOptions(), system_version="1.4.2")

        assert document.header.name == "Filroden the Bold"
        assert document.header.portrait is None
        assert [group.category for group in document.skill_groups] == ["Athletic", "Combat"]
        assert sum(len(group.entries) for group in document.skill_groups) == 2
        assert document.meta.module_version == __version__
        assert document.meta.system_version == "1.4.2"
        assert document.meta.schema_version == "2.0"

    @pytest.mark.asyncio
    async def test_disabled_sections_are_omitted(self, filroden):
        options = ExportOptions(section_enabled={SectionKey.SPELLS: False, SectionKey.DETAILS: False})

        document = await build_document(filroden, options)

        assert document.spells is None
        assert document.details is None
        assert "spells" not in document.to_data()
        assert document.stats is not None

    @pytest.mark.asyncio
    async def test_creature_sections(self, filroden_data):
        from sheet_export.host import LocalActor

        filroden_data["type"] = "Creature"

        document = await build_document(LocalActor(filroden_data), ExportOptions())

        assert document.talents is None
        assert document.inventory is None
        assert document.attacks is not None

    @pytest.mark.asyncio
    async def test_empty_collections(self, empty_character):
        from sheet_export.host import LocalActor

        document = await build_document(LocalActor(empty_character), ExportOptions())

        assert document.talents == []
        assert document.spells == []
        assert document.skill_groups == []
        assert document.inventory.items == []
        assert document.to_data()["talents"] == []

    @pytest.mark.asyncio
    async def test_portrait_is_inlined(self, filroden_data):
        from sheet_export.host import LocalActor

        filroden_data["img"] = "https://vtt.example.com/tokens/filroden.png"
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})
        )

        async with httpx.AsyncClient(transport=transport) as client:
            document = await build_document(LocalActor(filroden_data), ExportOptions(), http_client=client)

        assert document.header.portrait == "data:image/png;base64,iVBORw=="

    @pytest.mark.asyncio
    async def test_portrait_failure_keeps_document(self, filroden_data):
        from sheet_export.host import LocalActor

        filroden_data["img"] = "https://vtt.example.com/tokens/missing.png"
        transport = httpx.MockTransport(lambda request: httpx.Response(500))

        async with httpx.AsyncClient(transport=transport) as client:
            document = await build_document(LocalActor(filroden_data), ExportOptions(), http_client=client)

        assert document.header.name == "Filroden the Bold"
        assert document.header.portrait is None

    @pytest.mark.asyncio
    async def test_portrait_not_fetched_when_disabled(self, filroden_data):
        from sheet_export.host import LocalActor

        filroden_data["img"] = "https://vtt.example.com/tokens/filroden.png"
        handler = MagicMock(return_value=httpx.Response(200, content=b""))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            document = await build_document(
                LocalActor(filroden_data), ExportOptions(include_portrait=False), http_client=client
            )

        handler.assert_not_called()
        assert document.header.portrait is None

    @pytest.mark.asyncio
    async def test_derivation_runs_before_extraction(self, filroden_data):
        """Defensive options only exist after derivation; the snapshot reaches the extractor."""
        from sheet_export.host import LocalActor

        filroden_data["system"].pop("_hudInitialized")
        db_block = filroden_data["system"]["_dbBlock"]
        dodge, block = db_block.pop("dodgeOptions"), db_block.pop("blockOptions")
        actor = LocalActor(filroden_data)
        token = make_token(dodge_options=dodge, block_options=block)

        document = await build_document(actor, ExportOptions(), token_factory=MagicMock(return_value=token))

        token.derive_extended_data.assert_awaited_once()
        assert document.defenses.tactical[2].dodge == "+21"
