"""
Server-rendered HTML pages.

The pages read the caller from the same bearer header or access token cookie
as the JSON API and apply the same access policy before rendering.
"""

from pathlib import Path
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlmodel.ext.asyncio.session import AsyncSession

from livestreams.core.config import settings
from livestreams.core.deps import get_optional_caller
from livestreams.core.permissions import StreamFilter, build_stream_predicate, can_view
from livestreams.crud.streams import LIVE_FIRST_ORDER, StreamCrud
from livestreams.db.session import get_session
from livestreams.enums.streams import Visibility
from livestreams.schemas.users import Caller
from livestreams.services.google_oauth import get_google_client
from livestreams.utils.helper import is_truthy, parse_visibilities

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
GOOGLE_LOGIN_PATH = f"{settings.API_V1_STR}/auth/google/login"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["app_name"] = settings.APP_NAME
templates.env.globals["api_prefix"] = settings.API_V1_STR
templates.env.globals["google_login_path"] = GOOGLE_LOGIN_PATH
templates.env.globals["google_enabled"] = get_google_client().enabled

pages_router = APIRouter(tags=["pages"], include_in_schema=False)
stream_crud = StreamCrud()


@pages_router.get("/streams", response_class=HTMLResponse)
async def explore_page(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
    caller: Annotated[Optional[Caller], Depends(get_optional_caller)],
    q: Optional[str] = None,
    live: Optional[str] = None,
    mine: Optional[str] = None,
    visibility: Annotated[Optional[List[str]], Query()] = None,
) -> Response:
    caller_id = caller.id if caller else None
    search = (q or "").strip()
    live_only = is_truthy(live)
    # "mine" silently does nothing for anonymous visitors here
    mine_only = caller_id is not None and is_truthy(mine)

    stream_filter = StreamFilter(
        search=search or None,
        is_live=True if live_only else None,
        visibilities=parse_visibilities(visibility),
        mine_only=mine_only,
    )
    streams = await stream_crud.list_streams(
        session,
        build_stream_predicate(stream_filter, caller_id),
        order_by=LIVE_FIRST_ORDER,
    )

    return templates.TemplateResponse(
        request,
        "streams.html",
        {
            "caller": caller,
            "search": search,
            "live_only": live_only,
            "mine_only": mine_only,
            "streams": streams,
            "live_streams": [s for s in streams if s.is_live],
            "offline_streams": [s for s in streams if not s.is_live],
        },
    )


@pages_router.get("/stream/{id_or_slug}", response_class=HTMLResponse)
async def stream_page(
    request: Request,
    id_or_slug: str,
    session: Annotated[AsyncSession, Depends(get_session)],
    caller: Annotated[Optional[Caller], Depends(get_optional_caller)],
) -> Response:
    stream = await stream_crud.resolve(session, id_or_slug, with_owner=True)
    if stream is None or not can_view(stream, caller.id if caller else None):
        return templates.TemplateResponse(
            request,
            "not_found.html",
            {"caller": caller},
            status_code=status.HTTP_404_NOT_FOUND,
        )

    return templates.TemplateResponse(
        request,
        "stream.html",
        {
            "caller": caller,
            "stream": stream,
            "is_owner": caller is not None and caller.id == stream.user_id,
        },
    )


@pages_router.get("/dashboard", response_class=HTMLResponse)
async def dashboard_page(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
    caller: Annotated[Optional[Caller], Depends(get_optional_caller)],
) -> Response:
    if caller is None:
        return RedirectResponse(GOOGLE_LOGIN_PATH, status_code=status.HTTP_302_FOUND)

    streams = await stream_crud.list_streams(
        session, build_stream_predicate(StreamFilter(mine_only=True), caller.id)
    )
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "caller": caller,
            "streams": streams,
            "visibilities": list(Visibility),
        },
    )
