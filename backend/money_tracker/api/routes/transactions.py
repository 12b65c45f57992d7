from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.orm import Session
from money_tracker.core.database import get_db
from money_tracker.core.security import Identity
from money_tracker.api.dependencies import get_current_identity
from money_tracker.schemas.transaction import (
    DeleteResponse,
    Pagination,
    SummaryResponse,
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
)
from money_tracker.services.export_service import export_service
from money_tracker.services.transaction_service import MAX_ROW_ID, transaction_service

# Singular path for single-record operations, plural for collections
router = APIRouter(tags=["transactions"])


@router.post("/transaction", response_model=TransactionResponse, status_code=201)
def create_transaction(
    transaction: TransactionCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Create a transaction owned by the caller"""
    db_transaction = transaction_service.create(db, identity, transaction)
    return TransactionResponse.model_validate(db_transaction)


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    sort: str = Query("latest", description="latest, oldest, highest or lowest"),
    limit: int | None = Query(None, description="Page size, capped at 1000"),
    offset: int | None = Query(None, le=MAX_ROW_ID, description="Number of records to skip"),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """List the caller's transactions, one page at a time"""
    page, total, limit, offset = transaction_service.list(db, identity, sort, limit, offset)
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in page],
        pagination=Pagination(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + limit < total,
        ),
    )


@router.get("/transactions/summary", response_model=SummaryResponse)
def transactions_summary(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Income, expenses and balance over all of the caller's transactions"""
    summary = transaction_service.summary(db, identity)
    latest = summary["latest"]
    summary["latest"] = TransactionResponse.model_validate(latest) if latest else None
    return SummaryResponse(**summary)


@router.get("/transactions/export")
def export_transactions(
    fmt: str = Query("xlsx", alias="format", description="csv or xlsx"),
    sort: str = Query("latest"),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Download every transaction of the caller as a spreadsheet"""
    transactions = transaction_service.all(db, identity, sort)
    payload, media_type, filename = export_service.export(transactions, fmt)
    return Response(
        content=payload,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.delete("/transaction/{transaction_id}", response_model=DeleteResponse)
def delete_transaction(
    transaction_id: int = Path(..., ge=1, le=MAX_ROW_ID),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Delete one of the caller's transactions"""
    deleted = transaction_service.delete(db, identity, transaction_id)
    return DeleteResponse(deleted=TransactionResponse.model_validate(deleted))
