"""
Quote API endpoints.

WHAT: Draft editing and sending for staff; listing and accept/reject for
customers.

WHY: A quote only moves forward: draft -> sent -> accepted | rejected.
Staff prepare and send it; the customer decides on it in the portal.

HOW: Sending enqueues PDF generation and the email on the task queue;
the quote becomes "sent" once both succeeded. Responses are 202 for that
reason.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.deps import require_admin, require_organization_member
from app.db.session import get_db
from app.models.user import User
from app.schemas.billing import DocumentCreate, QuoteInformation, QuoteResponse, QuoteUpdate
from app.services.billing_service import QuoteService
from app.services.task_queue import TaskQueue, get_task_queue


router = APIRouter(tags=["quotes"])


def get_quote_service(
    db: AsyncSession = Depends(get_db),
    queue: TaskQueue = Depends(get_task_queue),
) -> QuoteService:
    return QuoteService(db, task_queue=queue)


# ============================================================================
# Staff endpoints
# ============================================================================


@router.post(
    "/quotes",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create quote",
    description="Create an empty draft quote with the next quote number (ADMIN only)",
)
async def create_quote(
    data: DocumentCreate,
    current_user: User = Depends(require_admin),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    return await service.create(data.project_id)


@router.get(
    "/quotes",
    response_model=List[QuoteResponse],
    summary="List quotes",
    description="Quotes in any status, optionally filtered (ADMIN only)",
)
async def list_quotes(
    project_id: Optional[int] = Query(None),
    organization_id: Optional[int] = Query(None),
    current_user: User = Depends(require_admin),
    service: QuoteService = Depends(get_quote_service),
) -> List[QuoteResponse]:
    return await service.list_quotes(project_id=project_id, organization_id=organization_id)


@router.get(
    "/quotes/{quote_id}",
    response_model=QuoteResponse,
    summary="Get quote",
)
async def get_quote(
    quote_id: int,
    current_user: User = Depends(require_admin),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    return await service.get(quote_id)


@router.get(
    "/quotes/{quote_id}/information",
    response_model=QuoteInformation,
    summary="Get quote information",
    description="The quote with its project and billing contact, as rendered on the PDF (ADMIN only)",
)
async def get_quote_information(
    quote_id: int,
    current_user: User = Depends(require_admin),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteInformation:
    return await service.get_information(quote_id)


@router.patch(
    "/quotes/{quote_id}",
    response_model=QuoteResponse,
    summary="Update quote",
    description="Edit dates, language and items of a draft (ADMIN only)",
)
async def update_quote(
    quote_id: int,
    data: QuoteUpdate,
    current_user: User = Depends(require_admin),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    """
    Update a draft quote.

    Raises:
        InvalidStateTransitionError (400): Quote is not a draft
        ValidationError (400): Date in the past or valid-until before date
    """
    return await service.update(
        quote_id,
        document_date=data.quote_date,
        deadline=data.quote_valid_until,
        language=data.language,
        items=[item.model_dump() for item in data.items] if data.items is not None else None,
    )


@router.post(
    "/quotes/{quote_id}/duplicate",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate quote",
    description="Copy items and language into a new draft (ADMIN only)",
)
async def duplicate_quote(
    quote_id: int,
    current_user: User = Depends(require_admin),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    return await service.duplicate(quote_id)


@router.post(
    "/quotes/{quote_id}/send",
    response_model=QuoteResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send quote",
    description="Queue PDF generation and delivery to the billing contact (ADMIN only)",
)
async def send_quote(
    quote_id: int,
    current_user: User = Depends(require_admin),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    return await service.send(quote_id)


@router.delete(
    "/quotes/{quote_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete quote",
)
async def delete_quote(
    quote_id: int,
    current_user: User = Depends(require_admin),
    service: QuoteService = Depends(get_quote_service),
) -> None:
    await service.delete(quote_id)


# ============================================================================
# Organization endpoints
# ============================================================================


@router.get(
    "/organizations/{organization_id}/quotes",
    response_model=List[QuoteResponse],
    summary="List organization quotes",
    description="Sent, accepted and rejected quotes of the organization",
)
async def list_organization_quotes(
    organization_id: int,
    project_id: Optional[int] = Query(None),
    ctx: AuthContext = Depends(require_organization_member()),
    service: QuoteService = Depends(get_quote_service),
) -> List[QuoteResponse]:
    return await service.list_for_organization(organization_id, project_id)


@router.get(
    "/organizations/{organization_id}/quotes/{quote_id}/information",
    response_model=QuoteInformation,
    summary="Get organization quote information",
)
async def get_organization_quote_information(
    organization_id: int,
    quote_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteInformation:
    return await service.get_information(quote_id, organization_id=organization_id)


@router.post(
    "/organizations/{organization_id}/quotes/{quote_id}/accept",
    response_model=QuoteResponse,
    summary="Accept quote",
    description="Accept a sent quote",
)
async def accept_quote(
    organization_id: int,
    quote_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    """
    Raises:
        InvalidStateTransitionError (400): Quote is not in status sent
    """
    return await service.accept(organization_id, quote_id)


@router.post(
    "/organizations/{organization_id}/quotes/{quote_id}/reject",
    response_model=QuoteResponse,
    summary="Reject quote",
    description="Reject a sent quote",
)
async def reject_quote(
    organization_id: int,
    quote_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    return await service.reject(organization_id, quote_id)
