"""Per-user sessions, tab groups and tab state."""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional

from playwright.async_api import BrowserContext

from ..core.config import TimeoutConfig
from .connection import BrowserHandle
from .page import Page
from .refs import ElementRef

logger = logging.getLogger(__name__)

TabGroup = dict[str, "TabState"]


@dataclass
class TabState:
    """Live page plus bookkeeping for one open tab."""

    page: Page
    refs: dict[str, ElementRef] = field(default_factory=dict)
    visited_urls: dict[str, None] = field(default_factory=dict)
    tool_calls: int = 0

    def record_call(self) -> None:
        """Count one agent-visible operation on this tab."""
        self.tool_calls += 1

    def record_visit(self, url: str) -> None:
        """Remember a URL once, keeping first-visit order."""
        self.visited_urls.setdefault(url, None)

    def invalidate_refs(self) -> None:
        """Drop refs after anything that may have replaced the DOM."""
        self.refs = {}

    def summary(self, tab_id: str) -> dict:
        """Listing entry for this tab in wire format."""
        return {
            "tabId": tab_id,
            "url": self.page.url,
            "toolCalls": self.tool_calls,
            "visitedCount": len(self.visited_urls),
        }


@dataclass
class TabLookup:
    """Result of finding a tab inside a session."""

    tab: TabState
    list_item_id: str
    group: TabGroup


@dataclass
class Session:
    """Isolated browsing identity for one user."""

    context: BrowserContext
    last_access: float
    tab_groups: dict[str, TabGroup] = field(default_factory=dict)

    def get_or_create_group(self, list_item_id: str) -> TabGroup:
        """Return the group for a list item, creating it empty on first use."""
        group = self.tab_groups.get(list_item_id)
        if group is None:
            group = {}
            self.tab_groups[list_item_id] = group
        return group

    def find_tab(self, tab_id: str) -> Optional[TabLookup]:
        """Scan every group for the tab. Tab ids are unique within a session."""
        for list_item_id, group in self.tab_groups.items():
            tab = group.get(tab_id)
            if tab is not None:
                return TabLookup(tab=tab, list_item_id=list_item_id, group=group)
        return None

    def tab_count(self) -> int:
        """Number of open tabs across all groups."""
        return sum(len(group) for group in self.tab_groups.values())


class SessionRegistry:
    """Maps user ids to sessions and manages tab lifecycle within them."""

    def __init__(
        self,
        handle: BrowserHandle,
        timeouts: Optional[TimeoutConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the registry.

        Args:
            handle: Shared browser used to create contexts.
            timeouts: Driver timeouts handed to every page wrapper.
            clock: Time source for last-access bookkeeping.
        """
        self._handle = handle
        self._timeouts = timeouts or TimeoutConfig()
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._creation_locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    def items(self) -> list[tuple[str, Session]]:
        """Snapshot of (user_id, session) pairs, safe to iterate across awaits."""
        return list(self._sessions.items())

    def now(self) -> float:
        """Current time on the registry's clock."""
        return self._clock()

    def get(self, user_id: str) -> Optional[Session]:
        """Return the user's session without creating one, touching last access."""
        session = self._sessions.get(user_id)
        if session is not None:
            session.last_access = self._clock()
        return session

    async def get_or_create(self, user_id: str) -> Session:
        """Return the user's session, creating a fresh browser context if needed.

        Concurrent first requests for one user share a single context.
        """
        session = self._sessions.get(user_id)
        if session is None:
            lock = self._creation_locks.setdefault(user_id, asyncio.Lock())
            try:
                async with lock:
                    session = self._sessions.get(user_id)
                    if session is None:
                        context = await self._handle.new_context()
                        session = Session(context=context, last_access=self._clock())
                        self._sessions[user_id] = session
                        logger.info(f"Session created for user {user_id}")
            finally:
                if not lock.locked() and self._creation_locks.get(user_id) is lock:
                    del self._creation_locks[user_id]
        session.last_access = self._clock()
        return session

    def pop(self, user_id: str) -> Optional[Session]:
        """Forget a session without closing its context."""
        return self._sessions.pop(user_id, None)

    async def close(self, user_id: str) -> bool:
        """Close the user's context and forget the session.

        Returns:
            True if a session existed.
        """
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        await session.context.close()
        logger.info(f"Session closed for user {user_id}")
        return True

    async def close_all(self) -> None:
        """Close every context, tolerating individual failures."""
        for user_id, session in self.items():
            self._sessions.pop(user_id, None)
            try:
                await session.context.close()
            except Exception as e:
                logger.warning(f"Failed to close context for user {user_id}: {e}")

    async def create_tab(
        self,
        session: Session,
        list_item_id: str,
        url: Optional[str] = None,
    ) -> tuple[str, TabState]:
        """Open a page in the session and register it under the group.

        The initial navigation, when requested, happens before the tab is
        registered, so a failed navigation leaves no half-created tab behind.
        """
        raw_page = await session.context.new_page()
        tab = TabState(page=Page(raw_page, self._timeouts))
        if url:
            try:
                await tab.page.goto(url)
            except Exception:
                await _close_quietly(tab.page)
                raise
            tab.record_visit(url)
            tab.record_call()

        tab_id = str(uuid.uuid4())
        session.get_or_create_group(list_item_id)[tab_id] = tab
        return tab_id, tab

    async def close_tab(self, session: Session, tab_id: str) -> bool:
        """Close one tab, dropping its group when it was the last one.

        Returns:
            True if the tab existed.
        """
        found = session.find_tab(tab_id)
        if found is None:
            return False
        await found.tab.page.close()
        found.group.pop(tab_id, None)
        if not found.group:
            session.tab_groups.pop(found.list_item_id, None)
        return True

    async def close_group(self, session: Session, list_item_id: str) -> bool:
        """Close every tab in a group and remove the group.

        Returns:
            True if the group existed.
        """
        group = session.tab_groups.get(list_item_id)
        if group is None:
            return False
        for tab in list(group.values()):
            await _close_quietly(tab.page)
        session.tab_groups.pop(list_item_id, None)
        return True


async def _close_quietly(page: Page) -> None:
    try:
        await page.close()
    except Exception as e:
        logger.debug(f"Page close failed: {e}")
