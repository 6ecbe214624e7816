"""HTTP routes. Handlers only parse input and delegate to the service."""
import re
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from .schemas import (
    ClickRequest,
    CreateTabRequest,
    CreateTabResponse,
    HealthResponse,
    LinksResponse,
    NavigateRequest,
    OkResponse,
    PressRequest,
    ScrollRequest,
    SnapshotResponse,
    StatsResponse,
    TabGroupsResponse,
    TabListResponse,
    TypeRequest,
    UrlResponse,
    UserRequest,
    WaitRequest,
    WaitResponse,
)
from .service import TabService

router = APIRouter()


def get_service(request: Request) -> TabService:
    return request.app.state.service


UserId = Annotated[str, Query(min_length=1)]

DEFAULT_LINKS_LIMIT = 50

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _leading_int(value: Optional[str]) -> int:
    """Leading integer of a query value, 0 when there is none (``12abc`` gives 12)."""
    """Leading integer of a query value, 0 when there is none (''12abc'' gives 12)."""
    match = _LEADING_INT_RE.match(value or "")
    return int(match.group(1)) if match else 0


@router.get("/health", response_model=HealthResponse)
async def health(service: TabService = Depends(get_service)):
    return service.health()


@router.get("/tabs", response_model=TabGroupsResponse)
async def list_tabs(userId: UserId, service: TabService = Depends(get_service)):
    return service.list_tabs(userId)


@router.get("/tabs/group/{listItemId}", response_model=TabListResponse)
async def list_group(listItemId: str, userId: UserId, service: TabService = Depends(get_service)):
    return service.list_group(userId, listItemId)


@router.post("/tabs", response_model=CreateTabResponse)
async def create_tab(body: CreateTabRequest, service: TabService = Depends(get_service)):
    return await service.create_tab(body)


@router.post("/tabs/{tabId}/navigate", response_model=UrlResponse)
async def navigate(tabId: str, body: NavigateRequest, service: TabService = Depends(get_service)):
    return await service.navigate(tabId, body)


@router.post("/tabs/{tabId}/back", response_model=UrlResponse)
async def back(tabId: str, body: UserRequest, service: TabService = Depends(get_service)):
    return await service.back(tabId, body.userId)


@router.post("/tabs/{tabId}/forward", response_model=UrlResponse)
async def forward(tabId: str, body: UserRequest, service: TabService = Depends(get_service)):
    return await service.forward(tabId, body.userId)


@router.post("/tabs/{tabId}/refresh", response_model=UrlResponse)
async def refresh(tabId: str, body: UserRequest, service: TabService = Depends(get_service)):
    return await service.refresh(tabId, body.userId)


@router.post("/tabs/{tabId}/wait", response_model=WaitResponse)
async def wait(tabId: str, body: WaitRequest, service: TabService = Depends(get_service)):
    return await service.wait(tabId, body)


@router.get("/tabs/{tabId}/snapshot", response_model=SnapshotResponse)
async def snapshot(
    tabId: str,
    userId: UserId,
    wait: bool = True,
    format: Literal["json", "text", "annotated"] = "json",
    service: TabService = Depends(get_service),
):
    return await service.snapshot(tabId, userId, wait=wait, fmt=format)


@router.post("/tabs/{tabId}/click", response_model=UrlResponse)
async def click(tabId: str, body: ClickRequest, service: TabService = Depends(get_service)):
    return await service.click(tabId, body)


@router.post("/tabs/{tabId}/type", response_model=OkResponse)
async def type_text(tabId: str, body: TypeRequest, service: TabService = Depends(get_service)):
    return await service.type_text(tabId, body)


@router.post("/tabs/{tabId}/press", response_model=OkResponse)
async def press(tabId: str, body: PressRequest, service: TabService = Depends(get_service)):
    return await service.press(tabId, body)


@router.post("/tabs/{tabId}/scroll", response_model=OkResponse)
async def scroll(tabId: str, body: ScrollRequest, service: TabService = Depends(get_service)):
    return await service.scroll(tabId, body)


@router.get("/tabs/{tabId}/links", response_model=LinksResponse)
async def links(
    tabId: str,
    userId: UserId,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    service: TabService = Depends(get_service),
):
    return await service.links(
        tabId,
        userId,
        limit=max(_leading_int(limit), 0) or DEFAULT_LINKS_LIMIT,
        offset=max(_leading_int(offset), 0),
    )


@router.get("/tabs/{tabId}/screenshot")
async def screenshot(
    tabId: str,
    userId: UserId,
    fullPage: bool = False,
    service: TabService = Depends(get_service),
):
    data = await service.screenshot(tabId, userId, full_page=fullPage)
    return Response(content=data, media_type="image/png")


@router.get("/tabs/{tabId}/stats", response_model=StatsResponse)
async def stats(tabId: str, userId: UserId, service: TabService = Depends(get_service)):
    return service.stats(tabId, userId)


@router.delete("/tabs/group/{listItemId}", response_model=OkResponse)
async def close_group(listItemId: str, body: UserRequest, service: TabService = Depends(get_service)):
    return await service.close_group(listItemId, body.userId)


@router.delete("/tabs/{tabId}", response_model=OkResponse)
async def close_tab(tabId: str, body: UserRequest, service: TabService = Depends(get_service)):
    return await service.close_tab(tabId, body.userId)


@router.delete("/sessions/{userId}", response_model=OkResponse)
async def close_session(userId: str, service: TabService = Depends(get_service)):
    return await service.close_session(userId)
