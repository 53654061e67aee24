from typing import Annotated

from fastapi import APIRouter, Depends, Request

from api.deps import get_app_settings, get_exchange
from core.config import Settings
from middleware.exchange import Exchange
from schemas.error_view import ErrorResponse, ErrorViewModel
from schemas.home import AppInfo, PrivacyInfo


router = APIRouter()


@router.get("/", response_model=AppInfo)
async def index(
    settings: Annotated[Settings, Depends(get_app_settings)],
    exchange: Annotated[Exchange | None, Depends(get_exchange)]
):
    """
    Application info.

    Also reports the scratch values the pipeline left on the exchange, so the
    hand-off from the middleware steps to routing is observable.
    """
    return AppInfo(
        name=settings.app_name,
        version=settings.app_version,
        context_items=exchange.items.as_dict() if exchange is not None else {},
    )


@router.get("/privacy", response_model=PrivacyInfo)
async def privacy():
    return PrivacyInfo()


@router.get("/error", response_model=ErrorResponse)
async def error(request: Request):
    """
    Generic error page; shows the request's correlation ID if any.

    Outside development, unhandled faults are re-executed here and sent as 500.
    """
    return ErrorResponse(
        details=ErrorViewModel(request_id=getattr(request.state, "request_id", None))
    )
