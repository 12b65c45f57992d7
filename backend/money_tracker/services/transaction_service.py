import logging
from typing import Any, Dict, List, Tuple
from sqlalchemy import case, func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from money_tracker.core.config import settings
from money_tracker.core.errors import InternalError, NotFound, ValidationFailed
from money_tracker.core.security import Identity
from money_tracker.models.transaction import Transaction
from money_tracker.schemas.transaction import TransactionCreate

logger = logging.getLogger(__name__)

TRANSACTION_NOT_FOUND_MESSAGE = "Transaction not found"

# Largest value a 64-bit integer column or OFFSET can take
MAX_ROW_ID = 2**63 - 1

# sort key -> (column, descending); id breaks ties in the same direction
SORT_ORDERS = {
    "latest": (Transaction.datetime, True),
    "oldest": (Transaction.datetime, False),
    "highest": (Transaction.price, True),
    "lowest": (Transaction.price, False),
}


def clamp_pagination(limit: int | None, offset: int | None) -> Tuple[int, int]:
    """
    Non-positive limits fall back to the default; offsets never go below 0.

    Offsets past the 64-bit range are rejected rather than sent to the database.
    """
    if not limit or limit <= 0:
        limit = settings.DEFAULT_PAGE_SIZE
    limit = min(limit, settings.MAX_PAGE_SIZE)
    offset = max(offset or 0, 0)
    if offset > MAX_ROW_ID:
        raise ValidationFailed(
            [{"field": "offset", "message": f"Offset must be at most {MAX_ROW_ID}"}])
    return limit, offset


class TransactionService:
    @staticmethod
    def create(db: Session, owner: Identity, fields: TransactionCreate) -> Transaction:
        """Persist a validated transaction stamped with the caller as owner"""
        db_transaction = Transaction(
            user_id=owner.user_id,
            name=fields.name,
            description=fields.description or "",
            price=fields.price,
            datetime=fields.datetime,
        )
        try:
            db.add(db_transaction)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating transaction for user {owner.user_id}: {e}")
            raise InternalError("Error adding transaction. Please try again.")

        db.refresh(db_transaction)
        logger.info(f"Transaction created: {db_transaction.id}")
        return db_transaction

    @staticmethod
    def _owned(db: Session, owner: Identity):
        return db.query(Transaction).filter(Transaction.user_id == owner.user_id)

    @staticmethod
    def _ordered(query, sort: str):
        if sort not in SORT_ORDERS:
            raise ValidationFailed(
                [{"field": "sort", "message": f"Sort must be one of: {', '.join(SORT_ORDERS)}"}],
                detail="Invalid sort parameter",
            )
        column, descending = SORT_ORDERS[sort]
        if descending:
            return query.order_by(column.desc(), Transaction.id.desc())
        return query.order_by(column.asc(), Transaction.id.asc())

    @staticmethod
    def list(
        db: Session,
        owner: Identity,
        sort: str = "latest",
        limit: int | None = None,
        offset: int | None = None,
    ) -> Tuple[List[Transaction], int, int, int]:
        """
        Return one page of the caller's transactions.

        Result is (page, total, limit, offset) with limit and offset after
        clamping, so the caller can tell whether more pages exist.
        """
        limit, offset = clamp_pagination(limit, offset)
        query = TransactionService._ordered(TransactionService._owned(db, owner), sort)
        try:
            page = query.offset(offset).limit(limit).all()
            total = TransactionService._owned(db, owner).count()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching transactions for user {owner.user_id}: {e}")
            raise InternalError("Failed to fetch transactions")
        return page, total, limit, offset

    @staticmethod
    def all(db: Session, owner: Identity, sort: str = "latest") -> List[Transaction]:
        """Every transaction of the caller, unpaginated (used by export)"""
        query = TransactionService._ordered(TransactionService._owned(db, owner), sort)
        return query.all()

    @staticmethod
    def delete(db: Session, owner: Identity, transaction_id: int) -> Transaction:
        """
        Delete one of the caller's transactions.

        The lookup filters on id and owner together: another user's id looks
        exactly like an id that does not exist.
        """
        # Out-of-range ids cannot exist and would overflow the driver
        if not 0 < transaction_id <= MAX_ROW_ID:
            raise NotFound(TRANSACTION_NOT_FOUND_MESSAGE)

        db_transaction = TransactionService._owned(db, owner).filter(
            Transaction.id == transaction_id
        ).first()

        if not db_transaction:
            raise NotFound(TRANSACTION_NOT_FOUND_MESSAGE)

        try:
            db.delete(db_transaction)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting transaction {transaction_id}: {e}")
            raise InternalError("Failed to delete transaction")

        logger.info(f"Transaction deleted: {transaction_id}")
        return db_transaction

    @staticmethod
    def summary(db: Session, owner: Identity) -> Dict[str, Any]:
        """Totals behind the balance view: income, expenses and signed balance"""
        income, expenses, balance, count = db.query(
            func.coalesce(func.sum(case((Transaction.price > 0, Transaction.price), else_=0.0)), 0.0),
            func.coalesce(func.sum(case((Transaction.price < 0, -Transaction.price), else_=0.0)), 0.0),
            func.coalesce(func.sum(Transaction.price), 0.0),
            func.count(Transaction.id),
        ).filter(Transaction.user_id == owner.user_id).one()

        latest = TransactionService._ordered(
            TransactionService._owned(db, owner), "latest").first()

        return {
            "count": count,
            "income": float(income),
            "expenses": float(expenses),
            "balance": float(balance),
            "latest": latest,
        }


transaction_service = TransactionService()
