"""Request and response models for the HTTP surface.

Field names follow the JSON wire format (camelCase) so models serialize
without aliases.
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..browser.refs import ElementRef


class UserRequest(BaseModel):
    """Body of every tab-scoped call."""

    userId: str = Field(min_length=1)


class CreateTabRequest(UserRequest):
    listItemId: Optional[str] = None
    url: Optional[str] = None


class NavigateRequest(UserRequest):
    url: Optional[str] = None
    macro: Optional[str] = None
    query: Optional[str] = None


class WaitRequest(UserRequest):
    timeout: int = Field(default=10000, ge=0)
    waitForNetwork: bool = True


class ClickRequest(UserRequest):
    ref: Optional[str] = None
    selector: Optional[str] = None


class TypeRequest(UserRequest):
    ref: Optional[str] = None
    selector: Optional[str] = None
    text: str


class PressRequest(UserRequest):
    key: str = Field(min_length=1)


class ScrollRequest(UserRequest):
    direction: Literal["up", "down"] = "down"
    amount: int = Field(default=500, ge=0)


class OkResponse(BaseModel):
    ok: bool = True


class UrlResponse(OkResponse):
    url: str


class WaitResponse(BaseModel):
    ok: bool
    url: str
    message: str


class HealthResponse(BaseModel):
    ok: bool = True
    sessions: int


class TabSummary(BaseModel):
    tabId: str
    url: str
    toolCalls: int
    visitedCount: int


class TabGroupsResponse(BaseModel):
    tabGroups: dict[str, list[TabSummary]]


class TabListResponse(BaseModel):
    tabs: list[TabSummary]


class CreateTabResponse(BaseModel):
    tabId: str
    listItemId: str
    url: str


class SnapshotResponse(BaseModel):
    snapshot: str
    refs: dict[str, ElementRef]
    url: str
    title: str
    listItemId: str
    format: Literal["text", "annotated"] = "text"


class Link(BaseModel):
    url: str
    text: str = ""


class Pagination(BaseModel):
    total: int
    offset: int
    limit: int
    hasMore: bool


class LinksResponse(BaseModel):
    links: list[Link]
    pagination: Pagination


class StatsResponse(BaseModel):
    tabId: str
    listItemId: str
    url: str
    visitedUrls: list[str]
    toolCalls: int
    refsCount: int
