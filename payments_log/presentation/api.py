from http import HTTPStatus

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from payments_log.application.list_payment_events import ListPaymentEventsUseCase
from payments_log.core.exceptions import EventReadError, UnknownHookError
from payments_log.core.models import PaymentEvent, RecordResult
from payments_log.infrastructure.order_source import OrderSource
from payments_log.presentation.container import PresentationContainer
from payments_log.presentation.history import render_history, render_history_error
from payments_log.presentation.hooks import HookDispatcher

router = APIRouter()


class HookRequest(BaseModel):
    object_id: int


class PaymentEventResponseModel(PaymentEvent):
    pass


@router.post(
    "/hooks/{hook_name}",
    status_code=HTTPStatus.ACCEPTED,
    response_model=RecordResult,
)
@inject
async def handle_hook(
    hook_name: str,
    request: HookRequest,
    hook_dispatcher: HookDispatcher = Depends(
        Provide[PresentationContainer.hook_dispatcher]
    ),
):
    try:
        return await hook_dispatcher.dispatch(hook_name, request.object_id)
    except UnknownHookError:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND, detail=f"Unknown hook {hook_name}"
        )


@router.get(
    "/orders/{order_id}/payment-events",
    status_code=HTTPStatus.OK,
    response_model=list[PaymentEventResponseModel],
)
@inject
async def list_payment_events(
    order_id: int,
    list_events_use_case: ListPaymentEventsUseCase = Depends(
        Provide[PresentationContainer.application.list_payment_events_use_case]
    ),
):
    try:
        return await list_events_use_case(order_id)
    except EventReadError as e:
        return JSONResponse(
            content={"message": str(e)},
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        )


@router.get(
    "/orders/{order_id}/payment-history",
    status_code=HTTPStatus.OK,
    response_class=HTMLResponse,
)
@inject
async def payment_history(
    order_id: int,
    list_events_use_case: ListPaymentEventsUseCase = Depends(
        Provide[PresentationContainer.application.list_payment_events_use_case]
    ),
    order_source: OrderSource = Depends(
        Provide[PresentationContainer.application.infrastructure_container.order_source]
    ),
):
    try:
        events = await list_events_use_case(order_id)
    except EventReadError:
        return HTMLResponse(
            render_history_error(), status_code=HTTPStatus.INTERNAL_SERVER_ERROR
        )
    return HTMLResponse(await render_history(events, order_source.get_user_display_name))
