"""Hold account and withdrawal request endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from payroll_hold.api.dependencies import Caller, Withdrawals
from payroll_hold.api.schemas import (
    ApprovalRequest,
    ErrorResponse,
    HoldSnapshotResponse,
    RejectionRequest,
    WithdrawalCreate,
    WithdrawalRequestListResponse,
    WithdrawalRequestResponse,
)
from payroll_hold.services import WithdrawalRequestView

router = APIRouter(prefix="/hold", tags=["hold"])


def _view_response(view: WithdrawalRequestView) -> WithdrawalRequestResponse:
    response = WithdrawalRequestResponse.model_validate(view.request)
    return response.model_copy(
        update={"employee_name": view.employee_name, "employee_code": view.employee_code}
    )


# ============================================================================
# Request queue
# ============================================================================
# Registered before the /{employee_id} routes so "requests" is never parsed
# as an employee id.


@router.get(
    "/requests",
    response_model=WithdrawalRequestListResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_withdrawal_requests(
    withdrawals: Withdrawals,
    caller: Caller,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> WithdrawalRequestListResponse:
    """List withdrawal requests, newest first (admin only)."""
    views = await withdrawals.list_by_status(caller, status_filter)
    return WithdrawalRequestListResponse(
        items=[_view_response(v) for v in views],
        total=len(views),
    )


@router.post(
    "/requests/{request_id}/approve",
    response_model=WithdrawalRequestResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def approve_withdrawal(
    withdrawals: Withdrawals,
    caller: Caller,
    request_id: Annotated[UUID, Path()],
    payload: ApprovalRequest,
) -> WithdrawalRequestResponse:
    """Approve a pending request and record the withdrawal."""
    request = await withdrawals.approve(
        caller,
        request_id,
        payload.payment_method,
        reference_number=payload.reference_number,
        notes=payload.notes,
    )
    return WithdrawalRequestResponse.model_validate(request)


@router.post(
    "/requests/{request_id}/reject",
    response_model=WithdrawalRequestResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def reject_withdrawal(
    withdrawals: Withdrawals,
    caller: Caller,
    request_id: Annotated[UUID, Path()],
    payload: RejectionRequest,
) -> WithdrawalRequestResponse:
    """Reject a pending request."""
    request = await withdrawals.reject(caller, request_id, reason=payload.reason)
    return WithdrawalRequestResponse.model_validate(request)


# ============================================================================
# Per-employee hold account
# ============================================================================


@router.get(
    "/{employee_id}/snapshot",
    response_model=HoldSnapshotResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def hold_snapshot(
    withdrawals: Withdrawals,
    caller: Caller,
    employee_id: Annotated[UUID, Path()],
) -> HoldSnapshotResponse:
    """Current hold account view."""
    snapshot = await withdrawals.snapshot(caller, employee_id)
    return HoldSnapshotResponse.model_validate(snapshot)


@router.post(
    "/{employee_id}/requests",
    response_model=WithdrawalRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def request_withdrawal(
    withdrawals: Withdrawals,
    caller: Caller,
    employee_id: Annotated[UUID, Path()],
    payload: WithdrawalCreate,
) -> WithdrawalRequestResponse:
    """Request a withdrawal of matured hold funds (employee only)."""
    request = await withdrawals.request(caller, employee_id, payload.amount, notes=payload.notes)
    return WithdrawalRequestResponse.model_validate(request)
