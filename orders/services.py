"""
Order lifecycle operations.

Every operation that touches more than one row runs in a single database
transaction with a row lock on the table or order it mutates, so an order,
its items, the table state and the stock move together or not at all.
"""
from collections import Counter, namedtuple
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from urllib.parse import quote
import uuid
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from dashboard.models import RestaurantSettings
from inventory.models import Inventory, MenuItem
from .realtime import ORDER_ITEMS, publish_on_commit
from .exceptions import (
    TableUnavailable, InvalidStatusTransition, PaymentError, PaymentConflict,
    InsufficientStock, SelfOrderingDisabled
)
from .models import (
    Order, OrderItem, RestaurantTable, TableStatus, OrderStatus, OrderSource,
    PaymentMethod, PaymentStatus, KITCHEN_STATUSES
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')

Totals = namedtuple('Totals', ['subtotal', 'tax_amount', 'total_amount'])

# Manual moves the staff screens may make; completed is reached through payment only
ALLOWED_TRANSITIONS = {
    OrderStatus.ACTIVE: {OrderStatus.ONGOING, OrderStatus.SERVING},
    OrderStatus.ONGOING: {OrderStatus.SERVING},
    OrderStatus.SERVING: set(),
    OrderStatus.COMPLETED: set(),
}

STATUS_INFO = {
    OrderStatus.ACTIVE: {
        'title': 'Order Received',
        'description': 'Your order has been received and will be prepared shortly.',
        'estimated_time': '15-25 minutes',
    },
    OrderStatus.ONGOING: {
        'title': 'Being Prepared',
        'description': 'Our chefs are preparing your delicious meal.',
        'estimated_time': '10-15 minutes',
    },
    OrderStatus.SERVING: {
        'title': 'Ready to Serve',
        'description': 'Your order is ready! Our staff will serve it shortly.',
        'estimated_time': '2-5 minutes',
    },
    OrderStatus.COMPLETED: {
        'title': 'Order Completed',
        'description': 'Your order has been served. Enjoy your meal!',
        'estimated_time': 'Completed',
    },
}

HIGH_PRIORITY_AFTER = timedelta(minutes=30)
MEDIUM_PRIORITY_AFTER = timedelta(minutes=15)


def quantize(value):
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


# =============== TOTALS ===============

def calculate_totals(lines, rate):
    """
    Totals for ``(unit_price, quantity)`` lines at ``rate`` (a fraction, 0.18 for 18%).

    subtotal = sum(unit_price * quantity), tax = subtotal * rate,
    total = subtotal + tax; each rounded half-up to two places.
    """
    subtotal = quantize(sum(
        (Decimal(unit_price) * quantity for unit_price, quantity in lines),
        Decimal('0')
    ))
    tax_amount = quantize(subtotal * Decimal(rate))
    return Totals(subtotal, tax_amount, subtotal + tax_amount)


def split_tax(tax_amount, tax_rate):
    """Bill presentation: the tax in two equal SGST/CGST halves"""
    half = quantize(Decimal(tax_amount) / 2)
    half_rate = quantize(Decimal(tax_rate) / 2)
    return {
        'sgst_rate': half_rate,
        'sgst_amount': half,
        'cgst_rate': half_rate,
        'cgst_amount': Decimal(tax_amount) - half,
    }


# =============== ORDER CREATION ===============

def _decrement_stock(quantities):
    """Guarded decrement for every menu item that tracks inventory"""
    tracked = set(
        Inventory.objects.filter(menu_item_id__in=quantities.keys()).values_list('menu_item_id', flat=True)
    )
    for menu_item_id, quantity in quantities.items():
        if menu_item_id not in tracked:
            continue
        updated = Inventory.objects.filter(
            menu_item_id=menu_item_id, current_stock__gte=quantity
        ).update(current_stock=F('current_stock') - quantity, updated_at=timezone.now())
        if not updated:
            name = MenuItem.objects.filter(pk=menu_item_id).values_list('name', flat=True).first()
            raise InsufficientStock(f"Not enough stock for {name}.")


def _as_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError({'items': f"Invalid menu item id {value}."})


def place_order(table_id, customer_name, guest_count, items, source=OrderSource.STAFF, user=None):
    """
    Create an order with its line items on a free table.

    ``items`` is a list of ``{'menu_item_id', 'quantity', 'modifiers'}``.
    The table becomes occupied and points at the new order; stock is taken
    for every tracked item when the restaurant decrements stock on order.
    """
    restaurant = RestaurantSettings.load()
    if source == OrderSource.SELF_ORDER and not restaurant.allow_self_ordering:
        raise SelfOrderingDisabled()

    customer_name = (customer_name or '').strip()
    if not customer_name:
        raise ValidationError({'customer_name': 'Customer name is required.'})
    if not guest_count or int(guest_count) < 1:
        raise ValidationError({'guest_count': 'At least one guest is required.'})
    if not items:
        raise ValidationError({'items': 'An order needs at least one item.'})
    items = [dict(line, menu_item_id=_as_uuid(line.get('menu_item_id'))) for line in items]
    for line in items:
        if int(line.get('quantity', 0)) < 1:
            raise ValidationError({'items': 'Quantity must be at least 1.'})

    with transaction.atomic():
        try:
            table = RestaurantTable.objects.select_for_update().get(pk=table_id, is_active=True)
        except RestaurantTable.DoesNotExist:
            raise NotFound('Table not found.')

        if not table.is_free:
            logger.warning("Order refused on table %s: status %s", table.table_number, table.status)
            raise TableUnavailable(f"Table {table.table_number} is {table.status}.")

        menu = MenuItem.objects.in_bulk([line['menu_item_id'] for line in items])
        missing = [str(line['menu_item_id']) for line in items if line['menu_item_id'] not in menu]
        if missing:
            raise ValidationError({'items': f"Unknown menu items: {', '.join(missing)}"})
        unavailable = sorted({menu[line['menu_item_id']].name for line in items
                              if not menu[line['menu_item_id']].is_available})
        if unavailable:
            raise ValidationError({'items': f"Currently unavailable: {', '.join(unavailable)}"})

        totals = calculate_totals(
            [(menu[line['menu_item_id']].price, int(line['quantity'])) for line in items],
            restaurant.tax_fraction,
        )

        order = Order.objects.create(
            table=table,
            customer_name=customer_name,
            guest_count=int(guest_count),
            subtotal=totals.subtotal,
            tax_rate=restaurant.tax_rate,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            status=OrderStatus.ACTIVE,
            payment_status=PaymentStatus.PENDING,
            source=source,
            created_by=user if user is not None and user.is_authenticated else None,
        )

        order_items = []
        for line in items:
            menu_item = menu[line['menu_item_id']]
            quantity = int(line['quantity'])
            order_items.append(OrderItem(
                order=order,
                menu_item=menu_item,
                quantity=quantity,
                unit_price=menu_item.price,
                total_price=quantize(menu_item.price * quantity),
                modifiers=(line.get('modifiers') or '').strip(),
            ))
        OrderItem.objects.bulk_create(order_items)
        for item in order_items:
            publish_on_commit(ORDER_ITEMS, 'INSERT', item.pk, order.pk)

        table.status = TableStatus.OCCUPIED
        table.current_order = order
        table.save(update_fields=['status', 'current_order', 'updated_at'])

        if restaurant.decrement_stock_on_order:
            quantities = Counter()
            for line in items:
                quantities[menu[line['menu_item_id']].pk] += int(line['quantity'])
            _decrement_stock(quantities)

    logger.info(
        "Order %s placed on table %s (%s items, total %s, %s)",
        order.order_number, table.table_number, len(order_items), order.total_amount, source
    )
    return order


# =============== STATUS LIFECYCLE ===============

def _locked_order(order_id):
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFound('Order not found.')


def mark_serving(order_id):
    """
    Move an order to serving and its table with it.

    Does nothing when the order is already serving or completed, so the
    kitchen's automatic promotion and a manual move can both fire safely.
    """
    with transaction.atomic():
        order = _locked_order(order_id)
        if order.status not in KITCHEN_STATUSES:
            return order, False

        order.status = OrderStatus.SERVING
        order.save(update_fields=['status', 'updated_at'])
        RestaurantTable.objects.filter(pk=order.table_id, current_order=order).update(
            status=TableStatus.SERVING, updated_at=timezone.now()
        )

    logger.info("Order %s is ready to serve", order.order_number)
    return order, True


def change_status(order_id, new_status):
    """Manual staff transition. Forward only; the same status again is a no-op."""
    if new_status not in OrderStatus.values:
        raise ValidationError({'status': f"Unknown status {new_status}."})

    with transaction.atomic():
        order = _locked_order(order_id)
        if order.status == new_status:
            return order

        if new_status not in ALLOWED_TRANSITIONS[order.status]:
            logger.warning("Refused transition %s -> %s for %s", order.status, new_status, order.order_number)
            if new_status == OrderStatus.COMPLETED:
                raise InvalidStatusTransition('Orders are completed by taking payment.')
            raise InvalidStatusTransition(f"Cannot move an order from {order.status} to {new_status}.")

        if new_status == OrderStatus.SERVING:
            order, _ = mark_serving(order.pk)
            return order

        order.status = new_status
        order.save(update_fields=['status', 'updated_at'])

    logger.info("Order %s moved to %s", order.order_number, new_status)
    return order


# =============== KITCHEN ===============

def set_item_prepared(item_id, prepared=True):
    """
    Flag one line item as prepared (or not) and promote the order to
    serving once every item is prepared.

    Returns ``(item, order, promoted)``; ``promoted`` is True only for the
    call that actually moved the order.
    """
    with transaction.atomic():
        try:
            item = OrderItem.objects.select_related('menu_item').get(pk=item_id)
        except OrderItem.DoesNotExist:
            raise NotFound('Order item not found.')
        order = _locked_order(item.order_id)
        if order.status == OrderStatus.COMPLETED:
            raise InvalidStatusTransition('Items of a completed order cannot change.')

        item.is_prepared = bool(prepared)
        item.prepared_at = timezone.now() if item.is_prepared else None
        item.save(update_fields=['is_prepared', 'prepared_at', 'updated_at'])

        promoted = False
        all_prepared = not order.items.filter(is_prepared=False).exists()
        if all_prepared and order.status in KITCHEN_STATUSES:
            order, promoted = mark_serving(order.pk)

    return item, order, promoted


def order_priority(created_at, now=None):
    age = (now or timezone.now()) - created_at
    if age > HIGH_PRIORITY_AFTER:
        return 'high'
    if age > MEDIUM_PRIORITY_AFTER:
        return 'medium'
    return 'low'


def order_progress(order):
    """Prepared/total counts and a whole percent; uses prefetched items when present"""
    items = list(order.items.all())
    total = len(items)
    prepared = sum(1 for item in items if item.is_prepared)
    percent = round(prepared * 100 / total) if total else 0
    return {'prepared_items': prepared, 'total_items': total, 'percent': percent}


def status_info(status):
    return STATUS_INFO.get(status, {
        'title': 'Processing',
        'description': 'Processing your order...',
        'estimated_time': 'Please wait',
    })


def kitchen_queue():
    return (
        Order.objects.filter(status__in=KITCHEN_STATUSES)
        .select_related('table__floor', 'created_by')
        .prefetch_related('items__menu_item__category')
        .order_by('created_at')
    )


# =============== PAYMENT ===============

def process_payment(order_id, payment_method, room_number='', guest_name=''):
    """
    Settle a served order.

    Credit (room) payments need the room number and guest name. The order is
    completed and its table freed in the same transaction.
    """
    if payment_method not in PaymentMethod.values:
        raise PaymentError(f"Unknown payment method {payment_method}.")

    room_number = (room_number or '').strip()
    guest_name = (guest_name or '').strip()
    if payment_method == PaymentMethod.CREDIT and not (room_number and guest_name):
        raise PaymentError('Room number and guest name are required for credit payments.')

    with transaction.atomic():
        order = _locked_order(order_id)
        if order.payment_status != PaymentStatus.PENDING:
            raise PaymentConflict(f"Order {order.order_number} is already settled.")
        if order.status != OrderStatus.SERVING:
            raise PaymentConflict(f"Order {order.order_number} is {order.status}, only served orders can be paid.")

        now = timezone.now()
        order.payment_method = payment_method
        order.payment_status = (
            PaymentStatus.CREDIT if payment_method == PaymentMethod.CREDIT else PaymentStatus.PAID
        )
        order.status = OrderStatus.COMPLETED
        order.paid_at = now
        order.completed_at = now
        if payment_method == PaymentMethod.CREDIT:
            order.room_number = room_number
            order.guest_name = guest_name
        order.save()

        freed = RestaurantTable.objects.select_for_update().filter(
            pk=order.table_id, current_order=order
        )
        for table in freed:
            table.status = TableStatus.AVAILABLE
            table.current_order = None
            table.save(update_fields=['status', 'current_order', 'updated_at'])

    logger.info(
        "Order %s paid by %s (%s), total %s",
        order.order_number, payment_method, order.payment_status, order.total_amount
    )
    return order


def upi_payment_uri(amount, upi_id, note='Restaurant Bill Payment', currency='INR'):
    return f"upi://pay?pa={upi_id}&am={quantize(amount):.2f}&cu={currency}&tn={quote(note)}"
