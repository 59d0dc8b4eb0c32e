"""Operator console endpoints: statement ingestion, review and manual resolution."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from payrecon.core.security import get_current_operator
from payrecon.interfaces.http.deps import get_expiry_scheduler, get_reconciliation_service
from payrecon.modules.accounts import Account as AccountDomain
from payrecon.modules.payments import (
    ExpiryScheduler,
    InvalidPaymentRequestError,
    PendingTransaction,
    ReconciliationService,
    TransactionNotFoundError,
    TransactionStatus,
)
from payrecon.schemas import (
    IngestRequest,
    IngestSummaryResponse,
    RejectRequest,
    ResolutionResponse,
    SchedulerStatusResponse,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatsResponse,
)

router = APIRouter()


def _to_list(transactions: list[PendingTransaction]) -> TransactionListResponse:
    return TransactionListResponse(
        total=len(transactions),
        transactions=[TransactionResponse.model_validate(item) for item in transactions],
    )


def _resolution(ok: bool, transaction: PendingTransaction) -> ResolutionResponse:
    return ResolutionResponse(ok=ok, transaction=TransactionResponse.model_validate(transaction))


@router.post("/ingest", response_model=IngestSummaryResponse, summary="Submit raw statement or SMS text")
async def ingest_statement(
    payload: IngestRequest,
    operator: AccountDomain = Depends(get_current_operator),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> IngestSummaryResponse:
    summary = await service.ingest_text(payload.text, source=f"operator:{operator.username}:{payload.source}")
    return IngestSummaryResponse.from_domain(summary)


@router.get("/transactions", response_model=TransactionListResponse, summary="Audit list of payment requests, filterable by status and creation time")
async def list_transactions(
    status_filter: Optional[TransactionStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    created_from: Optional[datetime] = Query(default=None, description="Inclusive lower bound on creation time"),
    created_to: Optional[datetime] = Query(default=None, description="Inclusive upper bound on creation time"),
    _: AccountDomain = Depends(get_current_operator),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> TransactionListResponse:
    try:
        transactions = await service.list_transactions(
            status=status_filter,
            limit=limit,
            offset=offset,
            created_from=created_from,
            created_to=created_to,
        )
    except InvalidPaymentRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _to_list(list(transactions))


@router.get("/transactions/open", response_model=TransactionListResponse, summary="Open payment requests")
async def list_open_transactions(
    _: AccountDomain = Depends(get_current_operator),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> TransactionListResponse:
    return _to_list(list(await service.list_open()))


@router.get("/transactions/stats", response_model=TransactionStatsResponse, summary="Counts per status")
async def transaction_stats(
    _: AccountDomain = Depends(get_current_operator),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> TransactionStatsResponse:
    return TransactionStatsResponse(**await service.stats())


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    _: AccountDomain = Depends(get_current_operator),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> TransactionResponse:
    try:
        transaction = await service.get_status(transaction_id)
    except TransactionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found") from exc
    return TransactionResponse.model_validate(transaction)


@router.post("/transactions/{transaction_id}/confirm", response_model=ResolutionResponse)
async def confirm_transaction(
    transaction_id: str,
    operator: AccountDomain = Depends(get_current_operator),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> ResolutionResponse:
    try:
        ok, transaction = await service.manual_confirm(transaction_id, operator.username)
    except TransactionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found") from exc
    return _resolution(ok, transaction)


@router.post("/transactions/{transaction_id}/reject", response_model=ResolutionResponse)
async def reject_transaction(
    transaction_id: str,
    payload: RejectRequest,
    operator: AccountDomain = Depends(get_current_operator),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> ResolutionResponse:
    try:
        ok, transaction = await service.manual_reject(transaction_id, operator.username, payload.reason)
    except TransactionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found") from exc
    except InvalidPaymentRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _resolution(ok, transaction)


def _scheduler_status(scheduler: ExpiryScheduler, service: ReconciliationService) -> SchedulerStatusResponse:
    return SchedulerStatusResponse(
        **scheduler.status(),
        open_subscriptions=service.publisher.subscriber_count(),
    )


@router.get("/scheduler", response_model=SchedulerStatusResponse, summary="Expiry sweep status")
async def scheduler_status(
    _: AccountDomain = Depends(get_current_operator),
    scheduler: ExpiryScheduler = Depends(get_expiry_scheduler),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SchedulerStatusResponse:
    return _scheduler_status(scheduler, service)


@router.post("/scheduler/start", response_model=SchedulerStatusResponse)
async def start_scheduler(
    _: AccountDomain = Depends(get_current_operator),
    scheduler: ExpiryScheduler = Depends(get_expiry_scheduler),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SchedulerStatusResponse:
    scheduler.start()
    return _scheduler_status(scheduler, service)


@router.post("/scheduler/stop", response_model=SchedulerStatusResponse)
async def stop_scheduler(
    _: AccountDomain = Depends(get_current_operator),
    scheduler: ExpiryScheduler = Depends(get_expiry_scheduler),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SchedulerStatusResponse:
    await scheduler.stop()
    return _scheduler_status(scheduler, service)
