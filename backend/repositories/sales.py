# backend/repositories/sales.py
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from models.sale import InvoiceSequence, Sale, SaleItem


class SaleRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_sale(self, **fields) -> Sale:
        sale = Sale(**fields)
        self.db.add(sale)
        self.db.flush()
        return sale

    def add_item(self, sale: Sale, **fields) -> SaleItem:
        item = SaleItem(sale_id=sale.id, **fields)
        self.db.add(item)
        self.db.flush()
        return item

    def find_by_id(self, sale_id: int, user_id: int) -> Optional[Sale]:
        return (
            self.db.query(Sale)
            .options(selectinload(Sale.items))
            .filter(Sale.id == sale_id, Sale.user_id == user_id)
            .first()
        )

    def find_recent(self, user_id: int, limit: int = 5) -> List[Sale]:
        return (
            self.db.query(Sale)
            .options(selectinload(Sale.items))
            .filter(Sale.user_id == user_id)
            .order_by(Sale.created_at.desc(), Sale.id.desc())
            .limit(limit)
            .all()
        )

    def find_since(self, user_id: int, start: datetime, status: str = "completed") -> List[Sale]:
        return (
            self.db.query(Sale)
            .filter(Sale.user_id == user_id, Sale.created_at >= start, Sale.status == status)
            .order_by(Sale.created_at.asc())
            .all()
        )

    # (product_id, product_name, units sold, revenue) ordered by units sold
    def top_selling(self, user_id: int, limit: int = 5) -> List[Tuple[int, str, int, float]]:
        units = func.sum(SaleItem.quantity)
        return (
            self.db.query(
                SaleItem.product_id,
                func.max(SaleItem.product_name),
                units,
                func.sum(SaleItem.total_price),
            )
            .join(Sale, Sale.id == SaleItem.sale_id)
            .filter(Sale.user_id == user_id, Sale.status == "completed", SaleItem.product_id.isnot(None))
            .group_by(SaleItem.product_id)
            .order_by(units.desc(), SaleItem.product_id.asc())
            .limit(limit)
            .all()
        )

    def _highest_suffix(self, prefix: str, date_key: str) -> int:
        latest = (
            self.db.query(Sale.invoice_number)
            .filter(Sale.invoice_number.like(f"{prefix}-{date_key}-%"))
            .order_by(Sale.invoice_number.desc())
            .first()
        )
        if latest is None:
            return 0
        try:
            return int(latest[0].rsplit("-", 1)[-1])
        except ValueError:
            return 0

    def next_invoice_number(self, prefix: str, date_key: str) -> str:
        """
        Allocates the next invoice number for the day from the invoice_sequences counter.

        The increment is a single UPDATE inside the caller's transaction. The first
        sale of a day creates the counter row, starting after the highest suffix already
        used for that date; a concurrent first insert surfaces as an IntegrityError.
        """
        updated = (
            self.db.query(InvoiceSequence)
            .filter(InvoiceSequence.date_key == date_key)
            .update({InvoiceSequence.last_value: InvoiceSequence.last_value + 1}, synchronize_session=False)
        )
        if updated == 0:
            start = self._highest_suffix(prefix, date_key)
            self.db.add(InvoiceSequence(date_key=date_key, last_value=start + 1))
            self.db.flush()

        value = (
            self.db.query(InvoiceSequence.last_value)
            .filter(InvoiceSequence.date_key == date_key)
            .scalar()
        )
        return f"{prefix}-{date_key}-{value:04d}"
