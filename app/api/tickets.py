"""
Tickets API endpoints: intake, lifecycle changes, comments and history.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID
import logging

from app.api.deps import get_db, get_current_user
from app.models import Ticket, User
from app.schemas import (
    CommentCreate, CommentResponse, HistoryResponse, NextTicketNumber,
    TicketCreate, TicketDetailResponse, TicketPriorityUpdate, TicketResponse,
    TicketStatusUpdate, TicketUpdate
)
from app.services.analyzer import FeedbackAnalyzer, get_analyzer
from app.services.tickets import (
    TicketFilters, TicketReferenceError, TicketService, can_change_status,
    is_ticket_number_conflict
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["tickets"])


async def _get_ticket_or_404(service: TicketService, ticket_id: UUID, with_details: bool = False) -> Ticket:
    ticket = await service.get_ticket(ticket_id, with_details=with_details)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.get("/next-number", response_model=NextTicketNumber)
async def next_ticket_number(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """
    Preview the number the next ticket will get.

    Not reserved: a concurrent creation can take it first.
    """
    number = await TicketService(db).next_ticket_number()
    return NextTicketNumber(ticket_number=number)


@router.get("", response_model=List[TicketResponse])
async def list_tickets(
    status: Optional[str] = Query(None, description="Comma-separated statuses"),
    priority: Optional[str] = Query(None, description="Comma-separated priorities"),
    category_id: Optional[UUID] = None,
    assignee_id: Optional[UUID] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """
    List tickets, newest first.

    Supports filtering by:
    - status / priority: comma-separated lists (e.g. open,pending)
    - category_id, assignee_id, department
    - search: substring of title, ticket number or client name
    """
    filters = TicketFilters(
        status=status,
        priority=priority,
        category_id=category_id,
        assignee_id=assignee_id,
        department=department,
        search=search,
        limit=limit,
        offset=offset,
    )
    return await TicketService(db).list_tickets(filters)


@router.get("/{ticket_id}", response_model=TicketDetailResponse)
async def get_ticket(
    ticket_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Get a ticket with its comments, history and attachments."""
    return await _get_ticket_or_404(TicketService(db), ticket_id, with_details=True)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    data: TicketCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    analyzer: Optional[FeedbackAnalyzer] = Depends(get_analyzer)
):
    """
    Create a ticket.

    Department, priority and assignee left unset are filled in from the
    assignment rules and category defaults. The SLA deadline and ticket
    number are stamped here. A generic title ("New ticket", blank, or a copy
    of the description) is replaced by a suggested one.

    Returns 422 when the category, subcategory, location or assignee does
    not exist, and 409 when another request took the same ticket number;
    the client may retry the latter.
    """
    service = TicketService(db, analyzer=analyzer)
    try:
        ticket = await service.create_ticket(data, reporter=user)
    except TicketReferenceError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except IntegrityError as e:
        if not is_ticket_number_conflict(e):
            raise
        logger.warning(f"Ticket creation conflict: {e.orig}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Ticket number already taken, please retry"
        )
    return ticket


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: UUID,
    data: TicketUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Update ticket fields. Status and priority have their own endpoints."""
    service = TicketService(db)
    ticket = await _get_ticket_or_404(service, ticket_id)
    return await service.update_ticket(ticket, data)


@router.patch("/{ticket_id}/status", response_model=TicketResponse)
async def update_ticket_status(
    ticket_id: UUID,
    data: TicketStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Change a ticket's status.

    Allowed for admins, managers, the assignee and the reporter.
    """
    service = TicketService(db)
    ticket = await _get_ticket_or_404(service, ticket_id)

    if not can_change_status(ticket, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the assigned agent can change status"
        )

    return await service.change_status(ticket, data.status, actor=user)


@router.patch("/{ticket_id}/priority", response_model=TicketResponse)
async def update_ticket_priority(
    ticket_id: UUID,
    data: TicketPriorityUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Change a ticket's priority. The SLA deadline is not recomputed."""
    service = TicketService(db)
    ticket = await _get_ticket_or_404(service, ticket_id)
    return await service.change_priority(ticket, data.priority, actor=user)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(
    ticket_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Delete a ticket with its comments, history, attachments and notifications."""
    deleted = await TicketService(db).delete_ticket(ticket_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{ticket_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    ticket_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return await TicketService(db).list_comments(ticket_id)


@router.post(
    "/{ticket_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_comment(
    ticket_id: UUID,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Add a comment or internal note. The first one marks the first response time."""
    service = TicketService(db)
    ticket = await _get_ticket_or_404(service, ticket_id)
    return await service.add_comment(ticket, data, actor=user)


@router.get("/{ticket_id}/history", response_model=List[HistoryResponse])
async def list_history(
    ticket_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    return await TicketService(db).list_history(ticket_id)
