"""Webhook entry point for relayed SMS and e-mail notifications."""
from fastapi import APIRouter, Depends

from payrecon.core.security import require_internal_client
from payrecon.interfaces.http.deps import get_reconciliation_service
from payrecon.modules.payments import ReconciliationService
from payrecon.schemas import IngestRequest, IngestSummaryResponse

router = APIRouter()


@router.post("/webhook", response_model=IngestSummaryResponse, summary="Ingest relayed notification text")
async def ingest_webhook(
    payload: IngestRequest,
    client: str = Depends(require_internal_client),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> IngestSummaryResponse:
    source = f"webhook:{client}:{payload.source}"
    summary = await service.ingest_text(payload.text, source=source)
    return IngestSummaryResponse.from_domain(summary)
