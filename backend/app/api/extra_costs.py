"""
Extra cost API endpoints.

WHAT: Booking, editing, voiding and billing of extra costs for staff;
read-only listing for customers.

WHY: Costs are booked by staff as work happens and billed later on one
draft invoice. Customers follow the link on that invoice to the list of
costs it covers.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.deps import require_admin, require_organization_member
from app.db.session import get_db
from app.models.user import User
from app.schemas.billing import InvoiceResponse
from app.schemas.extra_cost import (
    ExtraCostCreate,
    ExtraCostInvoiceRequest,
    ExtraCostResponse,
    ExtraCostUpdate,
)
from app.services.extra_cost_service import ExtraCostService
from app.services.task_queue import TaskQueue, get_task_queue


router = APIRouter(tags=["extra-costs"])


def get_extra_cost_service(
    db: AsyncSession = Depends(get_db),
    queue: TaskQueue = Depends(get_task_queue),
) -> ExtraCostService:
    return ExtraCostService(db, task_queue=queue)


# ============================================================================
# Staff endpoints
# ============================================================================


@router.post(
    "/extra-costs",
    response_model=ExtraCostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book extra cost",
    description="Book a cost on a project; negative amounts are reimbursements (ADMIN only)",
)
async def create_extra_cost(
    data: ExtraCostCreate,
    current_user: User = Depends(require_admin),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> ExtraCostResponse:
    return await service.create(**data.model_dump())


@router.post(
    "/extra-costs/invoice",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invoice extra costs",
    description="Bill every outstanding cost of a project on a new draft invoice (ADMIN only)",
)
async def invoice_extra_costs(
    data: ExtraCostInvoiceRequest,
    current_user: User = Depends(require_admin),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> InvoiceResponse:
    """
    Raises:
        ValidationError (400): No outstanding costs on the project
    """
    return await service.invoice_outstanding(data.project_id, language=data.language)


@router.get(
    "/extra-costs",
    response_model=List[ExtraCostResponse],
    summary="List extra costs",
    description="Costs of a project, else of an organization, else all (ADMIN only)",
)
async def list_extra_costs(
    project_id: Optional[int] = Query(None),
    organization_id: Optional[int] = Query(None),
    current_user: User = Depends(require_admin),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> List[ExtraCostResponse]:
    return await service.list_extra_costs(project_id=project_id, organization_id=organization_id)


@router.get(
    "/extra-costs/{extra_cost_id}",
    response_model=ExtraCostResponse,
    summary="Get extra cost",
)
async def get_extra_cost(
    extra_cost_id: int,
    current_user: User = Depends(require_admin),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> ExtraCostResponse:
    return await service.get(extra_cost_id)


@router.patch(
    "/extra-costs/{extra_cost_id}",
    response_model=ExtraCostResponse,
    summary="Update extra cost",
    description="Edit a cost that has not been invoiced (ADMIN only)",
)
async def update_extra_cost(
    extra_cost_id: int,
    data: ExtraCostUpdate,
    current_user: User = Depends(require_admin),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> ExtraCostResponse:
    """
    Raises:
        InvalidStateTransitionError (400): Cost has been invoiced
    """
    return await service.update(extra_cost_id, **data.model_dump())


@router.post(
    "/extra-costs/{extra_cost_id}/void",
    response_model=ExtraCostResponse,
    summary="Void extra cost",
)
async def void_extra_cost(
    extra_cost_id: int,
    current_user: User = Depends(require_admin),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> ExtraCostResponse:
    return await service.set_voided(extra_cost_id, True)


@router.post(
    "/extra-costs/{extra_cost_id}/unvoid",
    response_model=ExtraCostResponse,
    summary="Unvoid extra cost",
)
async def unvoid_extra_cost(
    extra_cost_id: int,
    current_user: User = Depends(require_admin),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> ExtraCostResponse:
    return await service.set_voided(extra_cost_id, False)


@router.delete(
    "/extra-costs/{extra_cost_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete extra cost",
)
async def delete_extra_cost(
    extra_cost_id: int,
    current_user: User = Depends(require_admin),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> None:
    await service.delete(extra_cost_id)


# ============================================================================
# Organization endpoints
# ============================================================================


@router.get(
    "/organizations/{organization_id}/extra-costs",
    response_model=List[ExtraCostResponse],
    summary="List organization extra costs",
    description="Costs of the organization, optionally of one project or one invoice",
)
async def list_organization_extra_costs(
    organization_id: int,
    project_id: Optional[int] = Query(None),
    invoice_id: Optional[int] = Query(None, alias="invoiceId"),
    ctx: AuthContext = Depends(require_organization_member()),
    service: ExtraCostService = Depends(get_extra_cost_service),
) -> List[ExtraCostResponse]:
    return await service.list_for_organization(organization_id, project_id=project_id, invoice_id=invoice_id)
