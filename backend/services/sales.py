# backend/services/sales.py
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from models.product import Product
from models.sale import Sale
from repositories.products import ProductRepository
from repositories.sales import SaleRepository
from schemas.sale import SaleCreate, SaleDetail, SaleItemCreate, SalesAnalytics, SalesChartPoint
from services.alerts import AlertService
from services.results import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    OperationResult,
    ValidationFailed,
    require_user,
    service_operation,
    success,
)
from utils.audit import write_log
from utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

SALES_RANGES = {"7d": 7, "30d": 30, "90d": 90}


@dataclass
class PricedLine:
    product_id: int
    quantity: int
    unit_price: float
    discount: float
    subtotal: float
    total_price: float


def price_line(item: SaleItemCreate) -> PricedLine:
    subtotal = item.price * item.quantity
    discount = item.discount or 0
    return PricedLine(
        product_id=item.product_id,
        quantity=item.quantity,
        unit_price=item.price,
        discount=discount,
        subtotal=subtotal,
        total_price=subtotal - discount,
    )


def sale_totals(lines: List[PricedLine], overall_discount: float, tax_rate: float) -> Dict[str, float]:
    subtotal = sum(line.total_price for line in lines)
    after_discount = subtotal - overall_discount
    tax = after_discount * (tax_rate / 100)
    return {
        "subtotal": subtotal,
        "discount": overall_discount,
        "tax": tax,
        "total_amount": after_discount + tax,
    }


class SaleService:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.sales = SaleRepository(db)
        self.products = ProductRepository(db)
        self.alerts = AlertService(db, clock)

    def _validate_stock(self, user_id: int, lines: List[PricedLine]) -> Dict[int, Product]:
        # Quantities of a product listed on several lines are checked together
        requested: Dict[int, int] = {}
        for line in lines:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        products = {p.id: p for p in self.products.find_by_ids(requested.keys(), user_id)}
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise NotFoundError(
                    f"Product {product_id} not found",
                    {"items": [f"Product {product_id} not found or access denied"]},
                )
            if product.quantity < quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}. Available: {product.quantity}",
                    {"items": [f"{product.name}: requested {quantity}, available {product.quantity}"]},
                )
        return products

    def _persist(
        self, user_id: int, data: SaleCreate, lines: List[PricedLine], products: Dict[int, Product]
    ) -> Sale:
        now = self.clock()
        invoice_number = self.sales.next_invoice_number(settings.INVOICE_PREFIX, now.strftime("%Y%m%d"))
        sale = self.sales.create_sale(
            user_id=user_id,
            invoice_number=invoice_number,
            customer=data.customer,
            payment_method=data.payment_method,
            notes=data.notes,
            status="completed",
            created_at=now,
            **sale_totals(lines, data.overall_discount or 0, data.tax_rate or 0),
        )

        for line in lines:
            product = products[line.product_id]
            self.sales.add_item(
                sale,
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount=line.discount,
                subtotal=line.subtotal,
                total_price=line.total_price,
            )
            # Guarded decrement; 0 rows means a concurrent sale took the stock
            if self.products.decrement_quantity(product.id, user_id, line.quantity) == 0:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}",
                    {"items": [f"{product.name}: stock changed during checkout"]},
                )

        for product in products.values():
            self.alerts.check_and_create_alerts(user_id, product.id, product.quantity, product.low_stock_at)
        return sale

    @service_operation("Failed to create sale.")
    def create_sale(self, user_id: int, data: SaleCreate) -> OperationResult:
        """
        Checks out a cart: one sale, its lines, stock decrements and alerts in a single transaction.

        Sales decrement stock directly and do not write stock movements.
        """
        require_user(user_id)
        if not data.items:
            raise ValidationFailed("No items in sale", {"items": ["At least one item is required"]})

        lines = [price_line(item) for item in data.items]
        products = self._validate_stock(user_id, lines)

        for attempt in range(1, settings.INVOICE_NUMBER_RETRIES + 1):
            try:
                sale = self._persist(user_id, data, lines, products)
                self.db.commit()
                break
            except IntegrityError:
                # Another checkout claimed the same invoice number
                self.db.rollback()
                logger.warning("Invoice number collision on attempt %s/%s", attempt, settings.INVOICE_NUMBER_RETRIES)
                products = self._validate_stock(user_id, lines)
        else:
            raise ConflictError(
                "Could not allocate a unique invoice number. Please retry.",
                {"invoice_number": ["Invoice number collision"]},
            )

        logger.info("Sale %s created (%s), total %.2f", sale.id, sale.invoice_number, sale.total_amount)
        write_log(self.db, user_id=user_id, action="CREATE", resource="sales", entity_id=sale.id,
                  meta={"invoice_number": sale.invoice_number, "total": sale.total_amount,
                        "items": len(lines)})
        return success(
            "Sale completed successfully.",
            {"sale_id": sale.id, "invoice_number": sale.invoice_number},
        )

    @service_operation("Failed to fetch sale details.")
    def get_sale_details(self, user_id: int, sale_id: int) -> OperationResult:
        require_user(user_id)
        sale = self.sales.find_by_id(sale_id, user_id)
        if not sale:
            raise NotFoundError("Sale not found", {"sale_id": [f"Sale {sale_id} not found"]})
        return success("Sale retrieved.", SaleDetail.model_validate(sale))

    @service_operation("Failed to fetch recent sales.")
    def get_recent_sales(self, user_id: int, limit: Optional[int] = None) -> OperationResult:
        require_user(user_id)
        limit = limit or settings.RECENT_SALES_LIMIT
        sales = self.sales.find_recent(user_id, limit)
        return success("Recent sales retrieved.", [SaleDetail.model_validate(s) for s in sales])

    @service_operation("Failed to fetch sales analytics.")
    def get_sales_analytics(self, user_id: int, date_range: str = "30d") -> OperationResult:
        require_user(user_id)
        if date_range not in SALES_RANGES:
            raise ValidationFailed(
                "Invalid date range.",
                {"date_range": [f"Must be one of {', '.join(SALES_RANGES)}"]},
            )

        start = self.clock() - timedelta(days=SALES_RANGES[date_range])
        sales = self.sales.find_since(user_id, start, status="completed")

        total_revenue = sum(s.total_amount for s in sales)
        total_orders = len(sales)
        by_date: Dict[str, float] = {}
        for s in sales:
            day = s.created_at.strftime("%Y-%m-%d")
            by_date[day] = by_date.get(day, 0) + s.total_amount

        analytics = SalesAnalytics(
            total_revenue=total_revenue,
            total_orders=total_orders,
            average_order_value=total_revenue / total_orders if total_orders else 0,
            chart_data=[SalesChartPoint(date=d, amount=a) for d, a in sorted(by_date.items())],
        )
        return success("Sales analytics retrieved.", analytics)
