"""
Order placement, cancellation and order administration.

Placing an order is not one transaction: the order document is written first,
then stock/sold counters and the buyer's loyalty balance are moved with $inc,
then the order is flagged `sideEffectsApplied`. A crash in between leaves the
flag false and `reapply_pending_side_effects` finishes the job later, so the
side effects are applied at least once rather than exactly once.
"""
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Optional

import structlog
from pymongo import ReturnDocument

from database import create_document, now_utc, to_object_id
from errors import EmptyOrder, Forbidden, InsufficientStock, InvalidState, NotFound, ProductNotFound
from schemas import OrderLine, OrderStatus, PaymentStatus
from security import is_admin
from settings import (
    FREE_SHIPPING_THRESHOLD,
    LOYALTY_POINT_DIVISOR,
    ORDER_NUMBER_PREFIX,
    SHIPPING_FEE,
    TAX_RATE,
)

logger = structlog.get_logger(__name__)

CANCELLABLE_STATUSES = (OrderStatus.pending.value, OrderStatus.processing.value)
PURCHASED_STATUSES = (OrderStatus.shipped.value, OrderStatus.delivered.value)
TERMINAL_STATUSES = (OrderStatus.cancelled.value, OrderStatus.refunded.value)


def unit_price(product: dict) -> float:
    discount = product.get("discountPrice")
    if discount is not None and 0 <= discount < product["price"]:
        return discount
    return product["price"]


def compute_pricing(items_price: float) -> dict:
    items_price = round(items_price, 2)
    tax_price = round(items_price * TAX_RATE, 2)
    shipping_price = 0 if items_price > FREE_SHIPPING_THRESHOLD else SHIPPING_FEE
    return {
        "itemsPrice": items_price,
        "taxPrice": tax_price,
        "shippingPrice": shipping_price,
        "totalPrice": round(items_price + tax_price + shipping_price, 2),
        "loyaltyPoints": math.floor(items_price / LOYALTY_POINT_DIVISOR),
    }


def next_order_number(database, when: Optional[datetime] = None) -> str:
    day = (when or now_utc()).strftime("%y%m%d")
    counter = database["counter"].find_one_and_update(
        {"_id": f"order-{day}"},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return f"{ORDER_NUMBER_PREFIX}-{day}-{counter['seq']:04d}"


def build_order_lines(database, items: Iterable[OrderLine]):
    """Validate stock and snapshot each line. Reads only."""
    items = list(items)
    if not items:
        raise EmptyOrder()

    products = {}
    requested = Counter()
    for item in items:
        product_id = to_object_id(item.product, "product")
        if product_id not in products:
            product = database["product"].find_one({"_id": product_id})
            if not product:
                raise ProductNotFound(item.product)
            products[product_id] = product
        requested[product_id] += item.quantity
        product = products[product_id]
        if requested[product_id] > product.get("stock", 0):
            raise InsufficientStock(product["name"], product.get("stock", 0))

    lines = []
    items_price = 0.0
    for item in items:
        product = products[to_object_id(item.product)]
        price = unit_price(product)
        items_price += price * item.quantity
        images = product.get("images") or []
        lines.append({
            "product": product["_id"],
            "name": product["name"],
            "image": images[0] if images else None,
            "price": price,
            "quantity": item.quantity,
        })
    return lines, items_price


def apply_side_effects(database, order: dict) -> None:
    for line in order["items"]:
        database["product"].update_one(
            {"_id": line["product"]},
            {"$inc": {"stock": -line["quantity"], "sold": line["quantity"]}},
        )
    if order.get("loyaltyPoints"):
        database["user"].update_one({"_id": order["user"]}, {"$inc": {"loyaltyPoints": order["loyaltyPoints"]}})
    database["order"].update_one({"_id": order["_id"]}, {"$set": {"sideEffectsApplied": True}})
    order["sideEffectsApplied"] = True


def place_order(database, user_id, items: Iterable[OrderLine], shipping_address: dict, payment_method: str) -> dict:
    lines, items_price = build_order_lines(database, items)
    pricing = compute_pricing(items_price)

    order = {
        "orderNumber": next_order_number(database),
        "user": to_object_id(user_id, "user"),
        "items": lines,
        "shippingAddress": shipping_address,
        "paymentInfo": {"method": payment_method, "status": "pending"},
        **pricing,
        "status": OrderStatus.pending.value,
        "paymentStatus": PaymentStatus.pending.value,
        "sideEffectsApplied": False,
    }
    create_document(database, "order", order)
    apply_side_effects(database, order)
    logger.info(
        "order_created",
        order_id=str(order["_id"]),
        order_number=order["orderNumber"],
        user_id=str(order["user"]),
        total_price=order["totalPrice"],
        loyalty_points=order["loyaltyPoints"],
    )
    return order


def reapply_pending_side_effects(database, older_than: timedelta = timedelta(minutes=5)) -> int:
    """Finish orders whose stock and loyalty updates never completed."""
    cutoff = now_utc() - older_than
    query = {
        "sideEffectsApplied": False,
        "status": {"$ne": OrderStatus.cancelled.value},
        "createdAt": {"$lt": cutoff},
    }
    count = 0
    for order in database["order"].find(query):
        apply_side_effects(database, order)
        count += 1
        logger.warning("order_side_effects_reapplied", order_id=str(order["_id"]))
    return count


def find_order(database, order_id) -> dict:
    order = database["order"].find_one({"_id": to_object_id(order_id)})
    if not order:
        raise NotFound("Order not found")
    return order


def check_order_access(order: dict, principal: dict) -> None:
    if order["user"] != principal["_id"] and not is_admin(principal):
        raise Forbidden("Not authorized")


def cancel_order(database, order_id, principal: dict) -> dict:
    order = find_order(database, order_id)
    check_order_access(order, principal)
    if order["status"] not in CANCELLABLE_STATUSES:
        raise InvalidState("This order can no longer be cancelled")

    # compensation is decided from the document as it was when the status moved
    before = database["order"].find_one_and_update(
        {"_id": order["_id"], "status": {"$in": list(CANCELLABLE_STATUSES)}},
        {"$set": {"status": OrderStatus.cancelled.value, "updatedAt": now_utc()}},
        return_document=ReturnDocument.BEFORE,
    )
    if before is None:
        raise InvalidState("This order can no longer be cancelled")

    # an order whose side effects never ran has nothing to give back
    if before.get("sideEffectsApplied", True):
        for line in before["items"]:
            database["product"].update_one(
                {"_id": line["product"]},
                {"$inc": {"stock": line["quantity"], "sold": -line["quantity"]}},
            )
        if before.get("paymentStatus") == PaymentStatus.paid.value and before.get("loyaltyPoints"):
            database["user"].update_one({"_id": before["user"]}, {"$inc": {"loyaltyPoints": -before["loyaltyPoints"]}})

    logger.info("order_cancelled", order_id=str(order["_id"]), cancelled_by=str(principal["_id"]))
    return database["order"].find_one({"_id": order["_id"]})


def update_order_status(database, order_id, status: OrderStatus, principal: dict) -> dict:
    if status == OrderStatus.cancelled:
        return cancel_order(database, order_id, principal)
    order = find_order(database, order_id)
    if order["status"] in TERMINAL_STATUSES:
        raise InvalidState(f"A {order['status']} order cannot change status")
    changes = {"status": status.value, "updatedAt": now_utc()}
    if status == OrderStatus.delivered:
        changes["deliveredAt"] = now_utc()
    result = database["order"].update_one(
        {"_id": order["_id"], "status": {"$nin": list(TERMINAL_STATUSES)}},
        {"$set": changes},
    )
    if result.matched_count == 0:
        raise InvalidState("This order was closed in the meantime")
    logger.info("order_status_changed", order_id=str(order["_id"]), status=status.value)
    return database["order"].find_one({"_id": order["_id"]})


def update_payment_status(database, order_id, payment_status: PaymentStatus, transaction_id: Optional[str] = None) -> dict:
    order = find_order(database, order_id)
    changes = {"paymentStatus": payment_status.value, "updatedAt": now_utc()}
    if transaction_id:
        changes["paymentInfo.transactionId"] = transaction_id
    database["order"].update_one({"_id": order["_id"]}, {"$set": changes})
    logger.info("order_payment_changed", order_id=str(order["_id"]), payment_status=payment_status.value)
    return database["order"].find_one({"_id": order["_id"]})


def order_stats(database, start: datetime, end: datetime) -> dict:
    in_range = {"createdAt": {"$gte": start, "$lte": end}}

    summary = list(database["order"].aggregate([
        {"$match": in_range},
        {"$group": {
            "_id": None,
            "totalRevenue": {"$sum": "$totalPrice"},
            "totalOrders": {"$sum": 1},
            "averageOrderValue": {"$avg": "$totalPrice"},
            "totalTax": {"$sum": "$taxPrice"},
            "totalShipping": {"$sum": "$shippingPrice"},
        }},
    ]))
    by_status = list(database["order"].aggregate([
        {"$match": in_range},
        {"$group": {"_id": "$status", "count": {"$sum": 1}, "revenue": {"$sum": "$totalPrice"}}},
    ]))
    daily_sales = list(database["order"].aggregate([
        {"$match": {**in_range, "paymentStatus": PaymentStatus.paid.value}},
        {"$group": {
            "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$createdAt"}},
            "count": {"$sum": 1},
            "total": {"$sum": "$totalPrice"},
        }},
        {"$sort": {"_id": 1}},
    ]))
    top_products = list(database["order"].aggregate([
        {"$match": {**in_range, "status": {"$ne": OrderStatus.cancelled.value}}},
        {"$unwind": "$items"},
        {"$group": {
            "_id": "$items.product",
            "name": {"$first": "$items.name"},
            "totalQuantity": {"$sum": "$items.quantity"},
            "totalAmount": {"$sum": {"$multiply": ["$items.price", "$items.quantity"]}},
        }},
        {"$sort": {"totalQuantity": -1}},
        {"$limit": 5},
    ]))

    empty = {"totalRevenue": 0, "totalOrders": 0, "averageOrderValue": 0, "totalTax": 0, "totalShipping": 0}
    return {
        "stats": {
            "summary": _without_id(summary[0]) if summary and summary[0].get("totalOrders") else empty,
            "byStatus": by_status,
        },
        "dailySales": daily_sales,
        "topProducts": top_products,
    }


def _without_id(doc: dict) -> dict:
    return {k: v for k, v in doc.items() if k != "_id"}
