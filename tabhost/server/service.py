"""Tab service: every endpoint operation over the session registry."""
from __future__ import annotations

import logging
from typing import Optional

from ..browser.connection import BrowserHandle
from ..browser.macros import expand_macro
from ..browser.reaper import SessionReaper
from ..browser.refs import annotate_snapshot, build_refs, resolve_ref
from ..browser.tabs import SessionRegistry, TabLookup
from ..core.config import Settings
from ..core.errors import ClientError, DriverError, NotFound
from .schemas import (
    ClickRequest,
    CreateTabRequest,
    CreateTabResponse,
    HealthResponse,
    Link,
    LinksResponse,
    NavigateRequest,
    OkResponse,
    Pagination,
    PressRequest,
    ScrollRequest,
    SnapshotResponse,
    StatsResponse,
    TabGroupsResponse,
    TabListResponse,
    TabSummary,
    TypeRequest,
    UrlResponse,
    WaitRequest,
    WaitResponse,
)

logger = logging.getLogger(__name__)

SNAPSHOT_HINT = "Try waiting longer or check if the page loaded correctly"


class TabService:
    """Owns the browser handle, session registry and reaper for one server."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        handle: Optional[BrowserHandle] = None,
        registry: Optional[SessionRegistry] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.handle = handle or BrowserHandle(self.settings.browser)
        self.registry = registry or SessionRegistry(self.handle, self.settings.timeouts)
        self.reaper = SessionReaper(self.registry, self.settings.sessions)

    async def start(self) -> None:
        self.reaper.start()

    async def shutdown(self) -> None:
        """Stop the reaper, close every session, then the browser."""
        logger.info("Shutting down...")
        await self.reaper.stop()
        await self.registry.close_all()
        await self.handle.close()

    def _lookup(self, user_id: str, tab_id: str) -> TabLookup:
        session = self.registry.get(user_id)
        found = session.find_tab(tab_id) if session else None
        if found is None:
            raise NotFound("Tab not found")
        return found

    def health(self) -> HealthResponse:
        return HealthResponse(ok=True, sessions=len(self.registry))

    def list_tabs(self, user_id: str) -> TabGroupsResponse:
        session = self.registry.get(user_id)
        if session is None:
            return TabGroupsResponse(tabGroups={})
        return TabGroupsResponse(tabGroups={
            list_item_id: [TabSummary(**tab.summary(tab_id)) for tab_id, tab in group.items()]
            for list_item_id, group in session.tab_groups.items()
        })

    def list_group(self, user_id: str, list_item_id: str) -> TabListResponse:
        session = self.registry.get(user_id)
        group = session.tab_groups.get(list_item_id) if session else None
        if not group:
            return TabListResponse(tabs=[])
        return TabListResponse(tabs=[TabSummary(**tab.summary(tab_id)) for tab_id, tab in group.items()])

    async def create_tab(self, request: CreateTabRequest) -> CreateTabResponse:
        if not request.listItemId:
            raise ClientError("listItemId required")
        session = await self.registry.get_or_create(request.userId)
        tab_id, tab = await self.registry.create_tab(session, request.listItemId, request.url)
        logger.info(f"Tab {tab_id} created for user {request.userId} in group {request.listItemId}")
        return CreateTabResponse(tabId=tab_id, listItemId=request.listItemId, url=tab.page.url)

    async def navigate(self, tab_id: str, request: NavigateRequest) -> UrlResponse:
        tab = self._lookup(request.userId, tab_id).tab
        target = request.url
        if request.macro:
            target = expand_macro(request.macro, request.query or "")
        if not target:
            raise ClientError("url or macro required")

        tab.record_call()
        try:
            await tab.page.goto(target)
        finally:
            tab.invalidate_refs()
        tab.record_visit(tab.page.url)
        return UrlResponse(url=tab.page.url)

    async def back(self, tab_id: str, user_id: str) -> UrlResponse:
        tab = self._lookup(user_id, tab_id).tab
        tab.record_call()
        await tab.page.go_back()
        tab.invalidate_refs()
        tab.record_visit(tab.page.url)
        return UrlResponse(url=tab.page.url)

    async def forward(self, tab_id: str, user_id: str) -> UrlResponse:
        tab = self._lookup(user_id, tab_id).tab
        tab.record_call()
        await tab.page.go_forward()
        tab.invalidate_refs()
        tab.record_visit(tab.page.url)
        return UrlResponse(url=tab.page.url)

    async def refresh(self, tab_id: str, user_id: str) -> UrlResponse:
        tab = self._lookup(user_id, tab_id).tab
        tab.record_call()
        try:
            await tab.page.reload()
        finally:
            tab.invalidate_refs()
        tab.record_visit(tab.page.url)
        return UrlResponse(url=tab.page.url)

    async def wait(self, tab_id: str, request: WaitRequest) -> WaitResponse:
        tab = self._lookup(request.userId, tab_id).tab
        ready = await tab.page.wait_until_ready(
            timeout=request.timeout, wait_for_network=request.waitForNetwork
        )
        return WaitResponse(
            ok=ready,
            url=tab.page.url,
            message="Page is ready" if ready else "Page may still be loading",
        )

    async def snapshot(
        self,
        tab_id: str,
        user_id: str,
        wait: bool = True,
        fmt: str = "text",
    ) -> SnapshotResponse:
        """Rebuild the tab's refs and return the aria snapshot text.

        An empty snapshot is retried once after a short delay.
        """
        found = self._lookup(user_id, tab_id)
        tab = found.tab
        page = tab.page
        if page.is_closed():
            raise DriverError("Page is closed or invalid")

        if wait:
            await page.wait_until_ready(wait_for_network=True)

        tab.refs = await build_refs(page, self.settings.snapshot.max_refs)
        tab.record_call()

        snapshot = await page.aria_snapshot()
        if not snapshot:
            logger.info("Snapshot empty, retrying after short wait...")
            await page.wait(self.settings.timeouts.snapshot_retry)
            snapshot = await page.aria_snapshot()
        if not snapshot:
            raise DriverError(
                "Failed to get aria snapshot - page may not be ready",
                url=page.url,
                hint=SNAPSHOT_HINT,
            )

        if fmt == "annotated":
            snapshot = annotate_snapshot(snapshot, self.settings.snapshot.max_refs)
        return SnapshotResponse(
            snapshot=snapshot,
            refs=tab.refs,
            url=page.url,
            title=await page.title(),
            listItemId=found.list_item_id,
            format="annotated" if fmt == "annotated" else "text",
        )

    async def click(self, tab_id: str, request: ClickRequest) -> UrlResponse:
        tab = self._lookup(request.userId, tab_id).tab
        tab.record_call()
        if request.ref:
            locator = resolve_ref(tab.page.raw, request.ref, tab.refs)
            if locator is None:
                raise ClientError(f"Unknown ref: {request.ref}")
            await locator.click(timeout=self.settings.timeouts.action)
        elif request.selector:
            await tab.page.click(request.selector)
        else:
            raise ClientError("ref or selector required")

        await tab.page.wait_for_load()
        url = tab.page.url
        tab.record_visit(url)
        return UrlResponse(url=url)

    async def type_text(self, tab_id: str, request: TypeRequest) -> OkResponse:
        tab = self._lookup(request.userId, tab_id).tab
        tab.record_call()
        if request.ref:
            locator = resolve_ref(tab.page.raw, request.ref, tab.refs)
            if locator is None:
                raise ClientError(f"Unknown ref: {request.ref}")
            await locator.fill(request.text, timeout=self.settings.timeouts.action)
        elif request.selector:
            await tab.page.fill(request.selector, request.text)
        else:
            raise ClientError("ref or selector required")
        return OkResponse()

    async def press(self, tab_id: str, request: PressRequest) -> OkResponse:
        tab = self._lookup(request.userId, tab_id).tab
        tab.record_call()
        await tab.page.press(request.key)
        return OkResponse()

    async def scroll(self, tab_id: str, request: ScrollRequest) -> OkResponse:
        tab = self._lookup(request.userId, tab_id).tab
        tab.record_call()
        await tab.page.scroll(request.direction, request.amount)
        return OkResponse()

    async def links(self, tab_id: str, user_id: str, limit: int = 50, offset: int = 0) -> LinksResponse:
        tab = self._lookup(user_id, tab_id).tab
        tab.record_call()
        all_links = await tab.page.links()
        total = len(all_links)
        return LinksResponse(
            links=[Link(**link) for link in all_links[offset:offset + limit]],
            pagination=Pagination(
                total=total,
                offset=offset,
                limit=limit,
                hasMore=offset + limit < total,
            ),
        )

    async def screenshot(self, tab_id: str, user_id: str, full_page: bool = False) -> bytes:
        tab = self._lookup(user_id, tab_id).tab
        return await tab.page.screenshot(full_page=full_page)

    def stats(self, tab_id: str, user_id: str) -> StatsResponse:
        found = self._lookup(user_id, tab_id)
        tab = found.tab
        return StatsResponse(
            tabId=tab_id,
            listItemId=found.list_item_id,
            url=tab.page.url,
            visitedUrls=list(tab.visited_urls),
            toolCalls=tab.tool_calls,
            refsCount=len(tab.refs),
        )

    async def close_tab(self, tab_id: str, user_id: str) -> OkResponse:
        session = self.registry.get(user_id)
        if session and await self.registry.close_tab(session, tab_id):
            logger.info(f"Tab {tab_id} closed for user {user_id}")
        return OkResponse()

    async def close_group(self, list_item_id: str, user_id: str) -> OkResponse:
        session = self.registry.get(user_id)
        if session and await self.registry.close_group(session, list_item_id):
            logger.info(f"Tab group {list_item_id} closed for user {user_id}")
        return OkResponse()

    async def close_session(self, user_id: str) -> OkResponse:
        await self.registry.close(user_id)
        return OkResponse()
