"""
Invoice API endpoints.

WHAT: Draft editing, sending, status changes and quote splitting for
staff; listing for customers.

WHY: An invoice moves draft -> sent -> paid | overdue | cancelled. Staff
set the final statuses by hand, and every such change emails the
billing contact.

HOW: Sending and the status email run on the task queue after the
request commits; a failed email never reverts the status.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.deps import require_admin, require_organization_member
from app.db.session import get_db
from app.models.user import User
from app.schemas.billing import (
    DocumentCreate,
    InvoiceInformation,
    InvoiceResponse,
    InvoicesFromQuote,
    InvoiceStatusUpdate,
    InvoiceUpdate,
)
from app.services.billing_service import InvoiceService
from app.services.task_queue import TaskQueue, get_task_queue


router = APIRouter(tags=["invoices"])


def get_invoice_service(
    db: AsyncSession = Depends(get_db),
    queue: TaskQueue = Depends(get_task_queue),
) -> InvoiceService:
    return InvoiceService(db, task_queue=queue)


# ============================================================================
# Staff endpoints
# ============================================================================


@router.post(
    "/invoices",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invoice",
    description="Create an empty draft invoice with the next invoice number (ADMIN only)",
)
async def create_invoice(
    data: DocumentCreate,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    return await service.create(data.project_id)


@router.post(
    "/invoices/from-quote",
    response_model=List[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create invoices from quote",
    description="One draft invoice per percentage of the split (ADMIN only)",
)
async def create_invoices_from_quote(
    data: InvoicesFromQuote,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> List[InvoiceResponse]:
    """
    Split a quote into invoices.

    Raises:
        ValidationError (400): Percentages do not add up to 100
    """
    return await service.create_from_quote(data.quote_id, data.invoice_split)


@router.get(
    "/invoices",
    response_model=List[InvoiceResponse],
    summary="List invoices",
    description="Invoices in any status, optionally filtered (ADMIN only)",
)
async def list_invoices(
    project_id: Optional[int] = Query(None),
    organization_id: Optional[int] = Query(None),
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> List[InvoiceResponse]:
    return await service.list_invoices(project_id=project_id, organization_id=organization_id)


@router.get(
    "/invoices/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Get invoice",
)
async def get_invoice(
    invoice_id: int,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    return await service.get(invoice_id)


@router.get(
    "/invoices/{invoice_id}/information",
    response_model=InvoiceInformation,
    summary="Get invoice information",
    description="The invoice with its project and billing contact, as rendered on the PDF (ADMIN only)",
)
async def get_invoice_information(
    invoice_id: int,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceInformation:
    return await service.get_information(invoice_id)


@router.patch(
    "/invoices/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Update invoice",
    description="Edit dates, language and items of a draft (ADMIN only)",
)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    """
    Update a draft invoice.

    Raises:
        InvalidStateTransitionError (400): Invoice is not a draft
        ValidationError (400): Date in the past or due date before date
    """
    return await service.update(
        invoice_id,
        document_date=data.invoice_date,
        deadline=data.invoice_due_date,
        language=data.language,
        items=[item.model_dump() for item in data.items] if data.items is not None else None,
    )


@router.post(
    "/invoices/{invoice_id}/duplicate",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate invoice",
)
async def duplicate_invoice(
    invoice_id: int,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    return await service.duplicate(invoice_id)


@router.post(
    "/invoices/{invoice_id}/send",
    response_model=InvoiceResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send invoice",
    description="Queue PDF generation and delivery to the billing contact (ADMIN only)",
)
async def send_invoice(
    invoice_id: int,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    return await service.send(invoice_id)


@router.put(
    "/invoices/{invoice_id}/status",
    response_model=InvoiceResponse,
    summary="Update invoice status",
    description="Set paid, overdue or cancelled and email the billing contact (ADMIN only)",
)
async def update_invoice_status(
    invoice_id: int,
    data: InvoiceStatusUpdate,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    """
    Raises:
        ValidationError (400): Status is not paid, overdue or cancelled
    """
    return await service.update_status(invoice_id, data.status)


@router.delete(
    "/invoices/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete invoice",
)
async def delete_invoice(
    invoice_id: int,
    current_user: User = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> None:
    await service.delete(invoice_id)


# ============================================================================
# Organization endpoints
# ============================================================================


@router.get(
    "/organizations/{organization_id}/invoices",
    response_model=List[InvoiceResponse],
    summary="List organization invoices",
    description="Every invoice of the organization except drafts",
)
async def list_organization_invoices(
    organization_id: int,
    project_id: Optional[int] = Query(None),
    ctx: AuthContext = Depends(require_organization_member()),
    service: InvoiceService = Depends(get_invoice_service),
) -> List[InvoiceResponse]:
    return await service.list_for_organization(organization_id, project_id)


@router.get(
    "/organizations/{organization_id}/invoices/{invoice_id}/information",
    response_model=InvoiceInformation,
    summary="Get organization invoice information",
)
async def get_organization_invoice_information(
    organization_id: int,
    invoice_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceInformation:
    return await service.get_information(invoice_id, organization_id=organization_id)
