"""Storefront-facing endpoints: open a payment window and poll its outcome."""
from fastapi import APIRouter, Depends, HTTPException, status

from payrecon.core.security import require_internal_client
from payrecon.interfaces.http.deps import get_reconciliation_service
from payrecon.modules.payments import (
    InvalidPaymentRequestError,
    ReconciliationService,
    TransactionNotFoundError,
)
from payrecon.schemas import (
    PaymentRequestCreate,
    PaymentRequestResponse,
    TransactionListResponse,
    TransactionResponse,
)

router = APIRouter(dependencies=[Depends(require_internal_client)])


@router.post(
    "",
    response_model=PaymentRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a payment request at checkout",
)
async def create_payment_request(
    payload: PaymentRequestCreate,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> PaymentRequestResponse:
    try:
        transaction = await service.create_request(payload.order_ref, payload.expected_amount, payload.channel)
    except InvalidPaymentRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return PaymentRequestResponse.from_domain(transaction)


@router.get("/orders/{order_ref}", response_model=TransactionListResponse, summary="Payment requests of one order")
async def list_order_payments(
    order_ref: str,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> TransactionListResponse:
    transactions = await service.list_for_order(order_ref)
    return TransactionListResponse(
        total=len(transactions),
        transactions=[TransactionResponse.model_validate(item) for item in transactions],
    )


@router.get("/{transaction_id}", response_model=TransactionResponse, summary="Payment request status")
async def get_payment_status(
    transaction_id: str,
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> TransactionResponse:
    try:
        transaction = await service.get_status(transaction_id)
    except TransactionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found") from exc
    return TransactionResponse.model_validate(transaction)
