"""Plain-dict views of aggregates for response bodies."""

import json

from orderflow.cart.cart import Cart
from orderflow.order.order import Order
from orderflow.payment.intent import PaymentIntent, Transaction
from orderflow.shipping.results import TrackingResult
from orderflow.shipping.shipment import Shipment


def _value_object(vo) -> dict | None:
    return vo.to_dict() if vo is not None else None


def cart_view(cart: Cart, products: dict | None = None) -> dict:
    products = products or {}
    items = []
    for item in cart.lines:
        product = products.get(str(item.product_id))
        items.append(
            {
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "title": product.title if product else None,
                "price": product.price if product else None,
            }
        )
    return {"user_id": str(cart.user_id), "items": items, "updated_at": cart.updated_at}


def order_view(order: Order) -> dict:
    return {
        "id": str(order.id),
        "user_id": str(order.user_id),
        "items": [
            {
                "product_id": str(item.product_id),
                "title": item.title,
                "unit_price": item.unit_price,
                "quantity": item.quantity,
                "subtotal": item.subtotal,
            }
            for item in order.lines
        ],
        "total": order.total,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "payment_intent_id": order.payment_intent_id,
        "payment_info": _value_object(order.payment_info),
        "refunds": [
            {
                "refund_id": r.refund_id,
                "transaction_id": r.transaction_id,
                "amount": r.amount,
                "reason": r.reason,
                "created_at": r.created_at,
            }
            for r in sorted(order.refunds, key=lambda r: r.created_at)
        ],
        "shipping_info": _value_object(order.shipping_info),
        "shipping_address": _value_object(order.shipping_address),
        "billing_address": _value_object(order.billing_address),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def payment_summary_view(order: Order) -> dict:
    return {
        "order_id": str(order.id),
        "total": order.total,
        "payment_status": order.payment_status,
        "payment_info": _value_object(order.payment_info),
        "refunded_total": order.refunded_total,
        "history": [
            {
                "action": e.action,
                "intent_id": e.intent_id,
                "transaction_id": e.transaction_id,
                "refund_id": e.refund_id,
                "amount": e.amount,
                "status": e.status,
                "error_code": e.error_code,
                "message": e.message,
                "created_at": e.created_at,
            }
            for e in order.history
        ],
        "created_at": order.created_at,
    }


def intent_view(intent: PaymentIntent, include_secret: bool = False) -> dict:
    view = {
        "id": str(intent.id),
        "amount": intent.amount,
        "currency": intent.currency,
        "status": intent.status,
        "order_id": intent.order_id,
        "metadata": intent.metadata_dict,
        "processor": intent.processor,
        "payment_method": json.loads(intent.payment_method) if intent.payment_method else None,
        "transaction_id": intent.transaction_id,
        "last_payment_error": (
            {"code": intent.last_error_code, "message": intent.last_error_message} if intent.last_error_code else None
        ),
        "created_at": intent.created_at,
        "confirmed_at": intent.confirmed_at,
    }
    if include_secret:
        view["client_secret"] = intent.client_secret
    return view


def transaction_view(transaction: Transaction) -> dict:
    return {
        "id": str(transaction.id),
        "payment_intent_id": transaction.intent_id,
        "order_id": transaction.order_id,
        "amount": transaction.amount,
        "processing_fee": transaction.processing_fee,
        "net_amount": transaction.net_amount,
        "currency": transaction.currency,
        "processor": transaction.processor,
        "payment_method": json.loads(transaction.payment_method) if transaction.payment_method else None,
        "amount_refunded": transaction.amount_refunded,
        "status": transaction.status,
        "created_at": transaction.created_at,
    }


def shipment_view(shipment: Shipment) -> dict:
    return {
        "shipment_id": str(shipment.id),
        "order_id": shipment.order_id,
        "tracking_number": shipment.tracking_number,
        "carrier": shipment.carrier,
        "carrier_name": shipment.carrier_name,
        "service": shipment.service,
        "service_name": shipment.service_name,
        "cost": shipment.cost,
        "status": shipment.status,
        "label_url": shipment.label_url,
        "estimated_delivery": shipment.estimated_delivery,
        "created_at": shipment.created_at,
    }


def tracking_view(result: TrackingResult) -> dict:
    return {
        "tracking_number": result.tracking_number,
        "status": result.status,
        "estimated_delivery": result.estimated_delivery,
        "events": [{"status": e.status, "location": e.location, "timestamp": e.timestamp} for e in result.events],
    }
