"""Tests for the session registry and tab lifecycle."""
import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from tabhost.browser.refs import ElementRef
from tabhost.browser.tabs import SessionRegistry, TabState

from conftest import FakeClock, FakeHandle


class TestSessions:
    """Tests for session creation and access bookkeeping."""

    @pytest.mark.asyncio
    async def test_first_access_creates_one_context(self, registry: SessionRegistry, handle: FakeHandle) -> None:
        first = await registry.get_or_create("u1")
        second = await registry.get_or_create("u1")
        assert first is second
        assert len(handle.contexts) == 1
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_users_get_separate_contexts(self, registry: SessionRegistry, handle: FakeHandle) -> None:
        a = await registry.get_or_create("a")
        b = await registry.get_or_create("b")
        assert a.context is not b.context
        assert len(handle.contexts) == 2

    @pytest.mark.asyncio
    async def test_access_updates_last_access(self, registry: SessionRegistry, clock: FakeClock) -> None:
        session = await registry.get_or_create("u1")
        created = session.last_access
        clock.advance(30)
        registry.get("u1")
        assert session.last_access == created + 30
        clock.advance(5)
        await registry.get_or_create("u1")
        assert session.last_access == created + 35

    @pytest.mark.asyncio
    async def test_concurrent_first_access_shares_context(
        self, registry: SessionRegistry, handle: FakeHandle
    ) -> None:
        handle.context_delay = 0.01
        first, second = await asyncio.gather(
            registry.get_or_create("u1"), registry.get_or_create("u1")
        )
        assert first is second
        assert len(handle.contexts) == 1
        assert registry.get("u1").context is handle.contexts[0]

    @pytest.mark.asyncio
    async def test_concurrent_users_are_not_serialized_together(
        self, registry: SessionRegistry, handle: FakeHandle
    ) -> None:
        handle.context_delay = 0.01
        a, b = await asyncio.gather(registry.get_or_create("a"), registry.get_or_create("b"))
        assert a.context is not b.context
        assert len(handle.contexts) == 2

    def test_get_does_not_create(self, registry: SessionRegistry) -> None:
        assert registry.get("ghost") is None
        assert "ghost" not in registry

    @pytest.mark.asyncio
    async def test_close_closes_context(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        assert await registry.close("u1") is True
        assert session.context.closed is True
        assert "u1" not in registry
        assert await registry.close("u1") is False

    @pytest.mark.asyncio
    async def test_close_all_tolerates_failures(self, registry: SessionRegistry) -> None:
        bad = await registry.get_or_create("bad")
        good = await registry.get_or_create("good")
        bad.context.fail_close = True
        await registry.close_all()
        assert len(registry) == 0
        assert good.context.closed is True


class TestTabGroups:
    """Tests for tab creation, lookup and group cleanup."""

    @pytest.mark.asyncio
    async def test_find_tab_reports_its_group(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        g1_tab, _ = await registry.create_tab(session, "g1")
        g2_tab, _ = await registry.create_tab(session, "g2")

        found = session.find_tab(g1_tab)
        assert found.list_item_id == "g1"
        assert found.group is session.tab_groups["g1"]
        assert g1_tab not in session.tab_groups["g2"]
        assert session.find_tab(g2_tab).list_item_id == "g2"

    @pytest.mark.asyncio
    async def test_find_unknown_tab(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        assert session.find_tab("missing") is None

    @pytest.mark.asyncio
    async def test_tab_ids_are_unique(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        ids = {(await registry.create_tab(session, "g1"))[0] for _ in range(5)}
        assert len(ids) == 5
        assert session.tab_count() == 5

    @pytest.mark.asyncio
    async def test_create_without_url_is_fresh(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        _, tab = await registry.create_tab(session, "g1")
        assert tab.refs == {}
        assert list(tab.visited_urls) == []
        assert tab.tool_calls == 0

    @pytest.mark.asyncio
    async def test_create_with_url_navigates_first(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        _, tab = await registry.create_tab(session, "g1", "https://example.test/")
        assert tab.page.url == "https://example.test/"
        assert list(tab.visited_urls) == ["https://example.test/"]
        assert tab.tool_calls == 1

    @pytest.mark.asyncio
    async def test_failed_initial_navigation_registers_nothing(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        url = "https://broken.test/"
        session.context.failing_urls.add(url)
        with pytest.raises(PlaywrightError):
            await registry.create_tab(session, "g1", url)
        assert "g1" not in session.tab_groups
        assert session.context.pages[0].closed is True

    @pytest.mark.asyncio
    async def test_closing_last_tab_removes_group(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        first, first_tab = await registry.create_tab(session, "g1")
        second, _ = await registry.create_tab(session, "g1")

        assert await registry.close_tab(session, first) is True
        assert first_tab.page.is_closed()
        assert list(session.tab_groups["g1"]) == [second]

        await registry.close_tab(session, second)
        assert "g1" not in session.tab_groups

    @pytest.mark.asyncio
    async def test_close_unknown_tab(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        assert await registry.close_tab(session, "missing") is False

    @pytest.mark.asyncio
    async def test_close_group_closes_every_page(self, registry: SessionRegistry) -> None:
        session = await registry.get_or_create("u1")
        tabs = [(await registry.create_tab(session, "g1"))[1] for _ in range(3)]
        await registry.create_tab(session, "g2")

        assert await registry.close_group(session, "g1") is True
        assert all(tab.page.is_closed() for tab in tabs)
        assert list(session.tab_groups) == ["g2"]
        assert await registry.close_group(session, "g1") is False


class TestTabState:
    def test_record_call_counts_up(self) -> None:
        tab = TabState(page=None)
        tab.record_call()
        tab.record_call()
        assert tab.tool_calls == 2

    def test_invalidate_refs_replaces_table(self) -> None:
        refs = {"e1": ElementRef(role="button", name="Go")}
        tab = TabState(page=None, refs=refs)
        tab.invalidate_refs()
        assert tab.refs == {}
        assert refs == {"e1": ElementRef(role="button", name="Go")}

    def test_visits_keep_first_visit_order(self) -> None:
        tab = TabState(page=None)
        for url in ["https://z.test/", "https://a.test/", "https://z.test/"]:
            tab.record_visit(url)
        assert list(tab.visited_urls) == ["https://z.test/", "https://a.test/"]
