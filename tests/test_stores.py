"""Tests for the in-memory and JSON-file stores."""

import json

import pytest

from contracts import ApiEndpoint, ConfigRecord, ProjectContextVersion, ResolvedContext
from errors import ContextNotFound
from stores import (
    InMemoryConfigurationStore,
    InMemoryContextStore,
    JsonFileConfigurationStore,
    JsonFileContextStore,
)


@pytest.fixture(params=["memory", "json"])
def context_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryContextStore()
    return JsonFileContextStore(tmp_path / "project_contexts.json")


@pytest.fixture(params=["memory", "json"])
def config_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryConfigurationStore()
    return JsonFileConfigurationStore(tmp_path / "llm_configs.json")


def version(project_id, number, is_active=False, **context):
    return ProjectContextVersion(
        project_id=project_id,
        context=ResolvedContext(**context),
        version=number,
        is_active=is_active,
    )


class TestContextStores:
    """Both context stores behave the same."""

    @pytest.mark.asyncio
    async def test_create_active_deactivates_others(self, context_store):
        await context_store.create_version(version("shop", 1, is_active=True))
        await context_store.create_version(version("blog", 1, is_active=True))
        latest = await context_store.create_version(version("shop", 2, is_active=True))

        active = await context_store.get_active_context("shop")
        assert active.id == latest.id
        assert [v.is_active for v in await context_store.list_versions("shop")] == [False, True]
        assert (await context_store.get_active_context("blog")).is_active

    @pytest.mark.asyncio
    async def test_inactive_create_keeps_active(self, context_store):
        first = await context_store.create_version(version("shop", 1, is_active=True))
        await context_store.create_version(version("shop", 2))
        assert (await context_store.get_active_context("shop")).id == first.id

    @pytest.mark.asyncio
    async def test_activate(self, context_store):
        first = await context_store.create_version(version("shop", 1, is_active=True))
        second = await context_store.create_version(version("shop", 2))

        activated = await context_store.activate_version(second.id)
        assert activated.id == second.id
        assert activated.is_active
        assert (await context_store.get_active_context("shop")).id == second.id
        assert not [v for v in await context_store.list_versions("shop") if v.id == first.id][0].is_active

    @pytest.mark.asyncio
    async def test_activate_unknown(self, context_store):
        with pytest.raises(ContextNotFound):
            await context_store.activate_version("missing")

    @pytest.mark.asyncio
    async def test_no_active_context(self, context_store):
        assert await context_store.get_active_context("shop") is None
        assert await context_store.list_versions("shop") == []


class TestConfigurationStores:
    """Both configuration stores behave the same."""

    @pytest.mark.asyncio
    async def test_upsert_and_get(self, config_store):
        await config_store.upsert_config("local", ConfigRecord(id="local", config={"provider": "ollama"}))
        record = await config_store.get_config("local")
        assert record.config == {"provider": "ollama"}
        assert await config_store.get_config("missing") is None

    @pytest.mark.asyncio
    async def test_upsert_keeps_created_at(self, config_store):
        await config_store.upsert_config("local", ConfigRecord(id="local", config={}))
        created = (await config_store.get_config("local")).created_at

        await config_store.upsert_config("local", ConfigRecord(id="local", config={"v": 2}, is_active=True))
        record = await config_store.get_config("local")
        assert record.created_at == created
        assert record.is_active
        assert [r.id for r in await config_store.list_configs()] == ["local"]

    @pytest.mark.asyncio
    async def test_delete(self, config_store):
        await config_store.upsert_config("local", ConfigRecord(id="local", config={}))
        await config_store.delete_config("local")
        await config_store.delete_config("never-existed")
        assert await config_store.list_configs() == []


class TestJsonFiles:
    """JSON-file specifics."""

    @pytest.mark.asyncio
    async def test_context_document_round_trips(self, tmp_path):
        path = tmp_path / "nested" / "project_contexts.json"
        store = JsonFileContextStore(path)
        endpoint = ApiEndpoint(name="Orders", base_url="https://api.example.com", endpoints=["/orders"])
        await store.create_version(version("shop", 1, is_active=True, api_catalog=[endpoint]))

        document = json.loads(path.read_text())
        assert document[0]["context"]["api_catalog"][0]["baseUrl"] == "https://api.example.com"

        reopened = JsonFileContextStore(path)
        active = await reopened.get_active_context("shop")
        assert active.context.api_catalog[0].base_url == "https://api.example.com"
        assert not path.with_suffix(".json.tmp").exists()
