from rest_framework import status, generics, filters
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView
from django.db.models import Count, Q
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
import logging

from authentication.permissions import Capabilities, CapabilityPermissionMixin, HasCapability
from dashboard.models import RestaurantSettings
from inventory.models import MenuItem
from inventory.serializers import MenuItemListSerializer
from .models import (
    Floor, RestaurantTable, Order, TableStatus, OrderStatus, OrderSource, OPEN_STATUSES
)
from .serializers import (
    FloorSerializer, TableSerializer, OrderReadSerializer, OrderCreateSerializer,
    KitchenOrderSerializer, OrderStatusSerializer, ItemPreparedSerializer,
    OrderItemReadSerializer, PaymentSerializer, SelfOrderSerializer
)
from . import artifacts, services

logger = logging.getLogger(__name__)


def order_queryset():
    return Order.objects.select_related('table__floor', 'created_by').prefetch_related(
        'items__menu_item__category'
    )


def png_response(png, filename):
    response = HttpResponse(png, content_type='image/png')
    response['Content-Disposition'] = f'inline; filename="{filename}"'
    return response


# =============== FLOORS ===============

class FloorListCreateView(CapabilityPermissionMixin, generics.ListCreateAPIView):
    """
    get: List floors
    post: Create a floor (manage_tables)
    """
    queryset = Floor.objects.all()
    serializer_class = FloorSerializer
    read_capability = Capabilities.VIEW_TABLES
    write_capability = Capabilities.MANAGE_TABLES
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['is_active']
    ordering = ['floor_number']


class FloorDetailView(CapabilityPermissionMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    delete: Deactivate a floor without open tables
    """
    queryset = Floor.objects.all()
    serializer_class = FloorSerializer
    read_capability = Capabilities.VIEW_TABLES
    write_capability = Capabilities.MANAGE_TABLES

    def destroy(self, request, *args, **kwargs):
        floor = self.get_object()
        if floor.tables.filter(current_order__isnull=False).exists():
            return Response(
                {'error': 'Floor has tables with open orders'},
                status=status.HTTP_409_CONFLICT
            )
        floor.is_active = False
        floor.save(update_fields=['is_active', 'updated_at'])
        floor.tables.update(is_active=False, updated_at=timezone.now())
        logger.info("Floor %s deactivated by %s", floor.floor_name, request.user.username)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============== TABLES ===============

class TableListCreateView(CapabilityPermissionMixin, generics.ListCreateAPIView):
    """
    get: List tables with their floor and open order
    post: Create a table (manage_tables)
    """
    serializer_class = TableSerializer
    read_capability = Capabilities.VIEW_TABLES
    write_capability = Capabilities.MANAGE_TABLES
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['floor', 'status', 'is_active']
    search_fields = ['table_number']
    ordering_fields = ['table_number', 'capacity', 'status']

    def get_queryset(self):
        return RestaurantTable.objects.select_related('floor', 'current_order')


class TableDetailView(CapabilityPermissionMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Table details
    put/patch: Update a table (manage_tables)
    delete: Deactivate a table; tables are never removed
    """
    serializer_class = TableSerializer
    read_capability = Capabilities.VIEW_TABLES
    write_capability = Capabilities.MANAGE_TABLES

    def get_queryset(self):
        return RestaurantTable.objects.select_related('floor', 'current_order')

    def destroy(self, request, *args, **kwargs):
        table = self.get_object()
        if table.current_order_id:
            return Response(
                {'error': 'Table has an open order'},
                status=status.HTTP_409_CONFLICT
            )
        table.is_active = False
        table.save(update_fields=['is_active', 'updated_at'])
        logger.info("Table %s deactivated by %s", table.table_number, request.user.username)
        return Response(status=status.HTTP_204_NO_CONTENT)


@swagger_auto_schema(
    method='get',
    operation_description="Active tables grouped by floor, with status counts",
)
@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.VIEW_TABLES)])
def table_board(request):
    floors = Floor.objects.filter(is_active=True).order_by('floor_number')
    tables = RestaurantTable.objects.filter(is_active=True, floor__is_active=True).select_related(
        'floor', 'current_order'
    )
    by_floor = {}
    for table in tables:
        by_floor.setdefault(table.floor_id, []).append(table)

    counts = {value: 0 for value in TableStatus.values}
    for table in tables:
        counts[table.status] += 1

    return Response({
        'floors': [
            {
                'id': floor.id,
                'floor_name': floor.floor_name,
                'floor_number': floor.floor_number,
                'tables': TableSerializer(by_floor.get(floor.id, []), many=True).data,
            }
            for floor in floors
        ],
        'status_counts': counts,
        'total_tables': len(tables),
    })


# =============== TABLE QR CODES ===============

@swagger_auto_schema(
    method='get',
    operation_description="PNG QR code that opens the ordering page of the table",
    responses={200: openapi.Response('PNG image')}
)
@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.QR_CODES)])
def table_qr_code(request, pk):
    table = get_object_or_404(RestaurantTable, pk=pk, is_active=True)
    png = artifacts.qr_png(artifacts.table_order_url(table))
    return png_response(png, f"table-{table.table_number}-qr.png")


@swagger_auto_schema(
    method='post',
    operation_description="Store the ordering URL of every active table (or the given ones) as its QR target",
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        properties={
            'table_ids': openapi.Schema(type=openapi.TYPE_ARRAY, items=openapi.Schema(type=openapi.TYPE_STRING)),
        }
    )
)
@api_view(['POST'])
@permission_classes([HasCapability.of(Capabilities.QR_CODES)])
def generate_table_qr_codes(request):
    tables = RestaurantTable.objects.filter(is_active=True).select_related('floor')
    table_ids = request.data.get('table_ids')
    if table_ids:
        tables = tables.filter(id__in=table_ids)

    generated = []
    for table in tables:
        table.qr_code_url = artifacts.table_order_url(table)
        table.save(update_fields=['qr_code_url', 'updated_at'])
        generated.append({'id': table.id, 'table_number': table.table_number, 'qr_code_url': table.qr_code_url})

    logger.info("Generated QR codes for %s tables", len(generated))
    return Response({'generated': len(generated), 'tables': generated})


@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.QR_CODES)])
def table_qr_sheet(request):
    """Printable PDF with the QR code of every active table"""
    tables = RestaurantTable.objects.filter(is_active=True, floor__is_active=True).select_related('floor')
    floor = request.query_params.get('floor')
    if floor:
        tables = tables.filter(floor_id=floor)
    pdf = artifacts.qr_sheet_pdf(list(tables), RestaurantSettings.load())
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = 'attachment; filename="table_qr_codes.pdf"'
    return response


# =============== ORDERS ===============

class OrderListCreateView(generics.ListCreateAPIView):
    """
    get: List orders (view_orders)
    post: Place an order on a free table (create_orders)
    """
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'payment_status', 'payment_method', 'table', 'source']
    search_fields = ['order_number', 'customer_name', 'table__table_number']
    ordering_fields = ['created_at', 'total_amount']
    ordering = ['-created_at']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [HasCapability.of(Capabilities.CREATE_ORDERS)()]
        return [HasCapability.of(Capabilities.VIEW_ORDERS)()]

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return OrderCreateSerializer
        return OrderReadSerializer

    def get_queryset(self):
        queryset = order_queryset()

        # Filter by date
        date_filter = self.request.query_params.get('date')
        if date_filter:
            queryset = queryset.filter(created_at__date=date_filter)

        if self.request.query_params.get('open') == 'true':
            queryset = queryset.filter(status__in=OPEN_STATUSES)
        return queryset

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, description="Filter by order status", type=openapi.TYPE_STRING),
            openapi.Parameter('payment_status', openapi.IN_QUERY, description="Filter by payment status", type=openapi.TYPE_STRING),
            openapi.Parameter('table', openapi.IN_QUERY, description="Filter by table id", type=openapi.TYPE_STRING),
            openapi.Parameter('date', openapi.IN_QUERY, description="Filter by date (YYYY-MM-DD)", type=openapi.TYPE_STRING),
            openapi.Parameter('open', openapi.IN_QUERY, description="Only orders not yet completed", type=openapi.TYPE_BOOLEAN),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_description="Place an order. The table must be available; it becomes occupied.",
        request_body=OrderCreateSerializer,
        responses={201: OrderReadSerializer, 400: 'Bad Request', 409: 'Table unavailable or stock short'}
    )
    def post(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        order = serializer.save()

        # Return the created order with full details
        response_serializer = OrderReadSerializer(order_queryset().get(pk=order.pk))
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class OrderDetailView(generics.RetrieveAPIView):
    """Retrieve an order with its table, floor and items"""
    serializer_class = OrderReadSerializer
    permission_classes = [HasCapability.of(Capabilities.VIEW_ORDERS)]

    def get_queryset(self):
        return order_queryset()


@swagger_auto_schema(
    method='post',
    operation_description="Move an order forward (active -> ongoing -> serving). Completed is reached by payment.",
    request_body=OrderStatusSerializer,
    responses={200: OrderReadSerializer, 409: 'Transition not allowed'}
)
@api_view(['POST'])
@permission_classes([HasCapability.any_of(Capabilities.KITCHEN, Capabilities.CREATE_ORDERS)])
def update_order_status(request, pk):
    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order = services.change_status(pk, serializer.validated_data['status'])
    return Response(OrderReadSerializer(order_queryset().get(pk=order.pk)).data)


@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.VIEW_ORDERS)])
def order_kot(request, pk):
    """Printable kitchen order ticket"""
    order = get_object_or_404(order_queryset(), pk=pk)
    html = artifacts.render_kot_html(order, RestaurantSettings.load())
    return HttpResponse(html, content_type='text/html; charset=utf-8')


# =============== KITCHEN ===============

@swagger_auto_schema(
    method='get',
    operation_description="Orders waiting for the kitchen, oldest first, with priority and progress",
    responses={200: KitchenOrderSerializer(many=True)}
)
@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.KITCHEN)])
def kitchen_display(request):
    orders = services.kitchen_queue()
    now = timezone.now()
    data = KitchenOrderSerializer(orders, many=True, context={'request': request, 'now': now}).data
    return Response({
        'orders': data,
        'counts': {
            'total': len(data),
            'high': sum(1 for order in data if order['priority'] == 'high'),
            'medium': sum(1 for order in data if order['priority'] == 'medium'),
            'low': sum(1 for order in data if order['priority'] == 'low'),
        },
    })


@swagger_auto_schema(
    method='post',
    operation_description="Mark a line item prepared or not. The order moves to serving once every item is prepared.",
    request_body=ItemPreparedSerializer,
)
@api_view(['POST'])
@permission_classes([HasCapability.of(Capabilities.KITCHEN)])
def set_item_prepared(request, item_id):
    serializer = ItemPreparedSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    item, order, promoted = services.set_item_prepared(item_id, serializer.validated_data['is_prepared'])
    return Response({
        'item': OrderItemReadSerializer(item).data,
        'order_status': order.status,
        'order_ready': promoted,
        'progress': services.order_progress(order),
    })


@api_view(['POST'])
@permission_classes([HasCapability.of(Capabilities.KITCHEN)])
def mark_order_ready(request, pk):
    """Send a whole order to serving without ticking items one by one"""
    get_object_or_404(Order, pk=pk)
    order, promoted = services.mark_serving(pk)
    return Response({
        'order': OrderReadSerializer(order_queryset().get(pk=order.pk)).data,
        'order_ready': promoted,
    })


# =============== BILLING ===============

class BillingListView(generics.ListAPIView):
    """
    Orders at the billing desk: served and awaiting payment, plus settled ones.
    ``?payment_status=pending`` narrows to the ones still to collect.
    """
    serializer_class = OrderReadSerializer
    permission_classes = [HasCapability.of(Capabilities.BILLING)]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['status', 'payment_status', 'payment_method']
    search_fields = ['order_number', 'customer_name', 'table__table_number', 'room_number']

    def get_queryset(self):
        return order_queryset().filter(
            status__in=[OrderStatus.SERVING, OrderStatus.COMPLETED]
        ).order_by('-created_at')

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        totals = self.get_queryset().aggregate(
            pending=Count('id', filter=Q(payment_status='pending')),
            paid=Count('id', filter=Q(payment_status='paid')),
            credit=Count('id', filter=Q(payment_status='credit')),
        )
        response.data = {'orders': response.data, 'counts': totals}
        return response


@swagger_auto_schema(
    method='post',
    operation_description="Take payment for a served order. Completes the order and frees its table.",
    request_body=PaymentSerializer,
    responses={200: OrderReadSerializer, 400: 'Invalid payment', 409: 'Order not payable'}
)
@api_view(['POST'])
@permission_classes([HasCapability.of(Capabilities.BILLING)])
def pay_order(request, pk):
    serializer = PaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    order = services.process_payment(
        pk,
        serializer.validated_data['payment_method'],
        room_number=serializer.validated_data.get('room_number', ''),
        guest_name=serializer.validated_data.get('guest_name', ''),
    )
    return Response(OrderReadSerializer(order_queryset().get(pk=order.pk)).data)


@swagger_auto_schema(
    method='get',
    operation_description="UPI payment URI for the order total; ?image=png returns the QR image",
)
@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.BILLING)])
def upi_payment(request, pk):
    order = get_object_or_404(Order, pk=pk)
    restaurant = RestaurantSettings.load()
    if request.query_params.get('image') == 'png':
        return png_response(artifacts.upi_qr_png(order, restaurant), f"{order.order_number}-upi.png")
    uri = services.upi_payment_uri(order.total_amount, restaurant.upi_id, currency=restaurant.currency)
    return Response({'order_number': order.order_number, 'amount': order.total_amount, 'upi_uri': uri})


@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.BILLING)])
def bill_html(request, pk):
    order = get_object_or_404(Order.objects.select_related('table__floor'), pk=pk)
    html = artifacts.render_bill_html(order, RestaurantSettings.load())
    return HttpResponse(html, content_type='text/html; charset=utf-8')


@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.BILLING)])
def bill_pdf(request, pk):
    order = get_object_or_404(Order.objects.select_related('table__floor'), pk=pk)
    pdf = artifacts.bill_pdf(order, RestaurantSettings.load())
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="bill_{order.order_number}.pdf"'
    return response


# =============== PUBLIC SELF-ORDER ===============

def public_table(table_id):
    return get_object_or_404(
        RestaurantTable.objects.select_related('floor'), pk=table_id, is_active=True, floor__is_active=True
    )


class SelfOrderView(APIView):
    """
    Ordering page behind a table's QR code. No sign in.

    get: Table, the available menu grouped by category and the table's open orders
    post: Place an order on this table
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @swagger_auto_schema(operation_description="Menu and open orders for a table", security=[])
    def get(self, request, table_id):
        table = public_table(table_id)
        restaurant = RestaurantSettings.load()

        items = MenuItem.objects.filter(
            is_available=True, category__is_active=True
        ).select_related('category', 'inventory').order_by('category__display_order', 'category__name', 'name')
        menu = {}
        for item in items:
            group = menu.setdefault(item.category_id, {
                'category_id': item.category_id,
                'category_name': item.category.name,
                'items': [],
            })
            group['items'].append(item)
        categories = [
            dict(group, items=MenuItemListSerializer(group['items'], many=True).data)
            for group in menu.values()
        ]

        open_orders = order_queryset().filter(table=table, status__in=OPEN_STATUSES).order_by('-created_at')
        return Response({
            'restaurant_name': restaurant.restaurant_name,
            'self_ordering_enabled': restaurant.allow_self_ordering,
            'table': {
                'id': table.id,
                'table_number': table.table_number,
                'capacity': table.capacity,
                'status': table.status,
                'floor_name': table.floor.floor_name,
            },
            'tax_rate': restaurant.tax_rate,
            'currency': restaurant.currency,
            'menu': categories,
            'open_orders': OrderReadSerializer(open_orders, many=True).data,
        })

    @swagger_auto_schema(
        operation_description="Place a self-order. Refused when self-ordering is switched off or the table is taken.",
        request_body=SelfOrderSerializer,
        responses={201: OrderReadSerializer, 403: 'Self-ordering disabled', 409: 'Table unavailable'},
        security=[]
    )
    def post(self, request, table_id):
        table = public_table(table_id)
        serializer = SelfOrderSerializer(
            data=request.data,
            context={'request': request, 'table_id': table.id, 'source': OrderSource.SELF_ORDER}
        )
        serializer.is_valid(raise_exception=True)
        order = serializer.save()
        logger.info("Self-order %s placed from table %s", order.order_number, table.table_number)
        return Response(OrderReadSerializer(order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


@swagger_auto_schema(method='get', operation_description="Order confirmation with progress and status text", security=[])
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def self_order_confirmation(request, table_id, order_id):
    table = public_table(table_id)
    order = get_object_or_404(order_queryset(), pk=order_id, table=table)
    data = OrderReadSerializer(order).data
    data['status_info'] = services.status_info(order.status)
    return Response(data)
