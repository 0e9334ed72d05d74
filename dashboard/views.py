from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db import transaction
from django.db.models import Sum, Count, Q
from django.http import Http404
from django.utils import timezone
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
from decimal import Decimal
import logging

from authentication.permissions import Capabilities, HasCapability, has_capability
from inventory.services import low_stock_queryset
from orders.models import Order, RestaurantTable, OrderStatus, PaymentStatus, KITCHEN_STATUSES
from .models import RestaurantSettings, SystemSettings
from .serializers import RestaurantSettingsSerializer, SystemSettingsSerializer, ReportQuerySerializer
from . import reports

logger = logging.getLogger(__name__)

EXPORTERS = {
    'xlsx': reports.export_xlsx,
    'html': reports.export_html,
    'pdf': reports.export_pdf,
}

report_parameters = [
    openapi.Parameter('report_type', openapi.IN_QUERY, description="daily, monthly, yearly or custom", type=openapi.TYPE_STRING),
    openapi.Parameter('date', openapi.IN_QUERY, description="Day of a daily report (YYYY-MM-DD)", type=openapi.TYPE_STRING),
    openapi.Parameter('month', openapi.IN_QUERY, description="Month of a monthly report (YYYY-MM)", type=openapi.TYPE_STRING),
    openapi.Parameter('year', openapi.IN_QUERY, description="Year of a yearly report", type=openapi.TYPE_INTEGER),
    openapi.Parameter('start_date', openapi.IN_QUERY, description="First day of a custom report", type=openapi.TYPE_STRING),
    openapi.Parameter('end_date', openapi.IN_QUERY, description="Last day of a custom report", type=openapi.TYPE_STRING),
    openapi.Parameter('period', openapi.IN_QUERY, description="Grouping: day, month or year", type=openapi.TYPE_STRING),
]


# =============== DASHBOARD ===============

@swagger_auto_schema(
    method='get',
    operation_description="Today's figures for the dashboard home screen"
)
@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.VIEW_DASHBOARD)])
def dashboard_stats(request):
    today = timezone.localdate()
    today_orders = Order.objects.filter(created_at__date=today)

    settled = today_orders.filter(payment_status__in=[PaymentStatus.PAID, PaymentStatus.CREDIT])
    revenue = settled.aggregate(total=Sum('total_amount'))['total'] or Decimal('0.00')
    settled_count = settled.count()

    counts = Order.objects.aggregate(
        pending=Count('id', filter=Q(status__in=KITCHEN_STATUSES)),
        serving=Count('id', filter=Q(status=OrderStatus.SERVING)),
    )

    data = {
        'date': today.isoformat(),
        'today_revenue': revenue,
        'today_orders': today_orders.count(),
        'average_order_value': (revenue / settled_count).quantize(Decimal('0.01')) if settled_count else Decimal('0.00'),
        'pending_orders': counts['pending'],
        'serving_orders': counts['serving'],
        'occupied_tables': RestaurantTable.objects.filter(is_active=True, current_order__isnull=False).count(),
        'total_tables': RestaurantTable.objects.filter(is_active=True).count(),
    }
    # Stock figures only for roles that look after the stock
    if has_capability(request.user, Capabilities.MANAGE_INVENTORY):
        data['low_stock_items'] = low_stock_queryset().count()
    return Response(data)


# =============== REPORTS ===============

@swagger_auto_schema(
    method='get',
    operation_description="Sales report: summary, revenue by period, payment methods, popular items and hourly orders",
    manual_parameters=report_parameters
)
@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.REPORTS)])
def sales_report(request):
    query = ReportQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    report = reports.build_report(
        params['report_type'], params['first_day'], params['last_day'], params.get('period')
    )
    orders = report.pop('orders')
    report['orders'] = [
        dict(row, created_at=row['created_at'].isoformat())
        for row in orders.drop(columns=['hour']).to_dict('records')
    ]
    return Response(report)


@swagger_auto_schema(
    method='get',
    operation_description="Download the report as xlsx, html or pdf",
    manual_parameters=report_parameters
)
@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.REPORTS)])
def export_report(request, file_type):
    exporter = EXPORTERS.get(file_type)
    if exporter is None:
        raise Http404(f"Unknown export type {file_type}")

    query = ReportQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    report = reports.build_report(
        params['report_type'], params['first_day'], params['last_day'], params.get('period')
    )
    logger.info(
        "%s exported a %s report (%s to %s)",
        request.user.username, file_type, params['first_day'], params['last_day']
    )
    return exporter(report, RestaurantSettings.load())


# =============== SETTINGS ===============

def settings_payload():
    return {
        'restaurant': RestaurantSettingsSerializer(RestaurantSettings.load()).data,
        'system': SystemSettingsSerializer(SystemSettings.load()).data,
    }


@swagger_auto_schema(
    method='put',
    operation_description="Update restaurant and/or system settings; omitted fields keep their value",
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        properties={
            'restaurant': openapi.Schema(type=openapi.TYPE_OBJECT),
            'system': openapi.Schema(type=openapi.TYPE_OBJECT),
        }
    )
)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def settings_detail(request):
    if request.method == 'GET':
        return Response(settings_payload())

    if not has_capability(request.user, Capabilities.MANAGE_SETTINGS):
        return Response(
            {'detail': 'You do not have permission to change settings.'},
            status=status.HTTP_403_FORBIDDEN
        )

    restaurant = RestaurantSettingsSerializer(
        RestaurantSettings.load(), data=request.data.get('restaurant', {}), partial=True
    )
    system = SystemSettingsSerializer(
        SystemSettings.load(), data=request.data.get('system', {}), partial=True
    )
    restaurant.is_valid(raise_exception=True)
    system.is_valid(raise_exception=True)
    with transaction.atomic():
        restaurant.save()
        system.save()

    logger.info("Settings updated by %s", request.user.username)
    return Response(settings_payload())


@api_view(['POST'])
@permission_classes([HasCapability.of(Capabilities.MANAGE_SETTINGS)])
def reset_settings(request):
    """Put restaurant and system settings back to their defaults"""
    with transaction.atomic():
        RestaurantSettings.reset()
        SystemSettings.reset()
    logger.warning("Settings reset to defaults by %s", request.user.username)
    return Response(settings_payload())
