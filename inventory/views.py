from rest_framework import generics, status, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.shortcuts import get_object_or_404
from django.db.models import Count, F, Q, Sum, DecimalField, ExpressionWrapper
from django.db.models.deletion import ProtectedError
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg.utils import swagger_auto_schema
from django.utils import timezone
import logging

from authentication.permissions import Capabilities, CapabilityPermissionMixin, HasCapability
from .models import Category, MenuItem, Inventory, StockStatus
from .serializers import (
    CategorySerializer, MenuItemListSerializer, MenuItemCreateUpdateSerializer,
    InventorySerializer, RestockSerializer, BulkAvailabilitySerializer
)
from . import services

logger = logging.getLogger(__name__)


# =============== CATEGORY VIEWS ===============

class CategoryListCreateView(CapabilityPermissionMixin, generics.ListCreateAPIView):
    """
    get: List menu categories
    post: Create a category (manage_menu)
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    write_capability = Capabilities.MANAGE_MENU
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['name']
    ordering_fields = ['name', 'display_order', 'created_at']
    ordering = ['display_order', 'name']


class CategoryRetrieveUpdateDestroyView(CapabilityPermissionMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Category details
    put/patch: Update category (manage_menu)
    delete: Delete an empty category (manage_menu)
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    write_capability = Capabilities.MANAGE_MENU

    def destroy(self, request, *args, **kwargs):
        category = self.get_object()
        try:
            category.delete()
        except ProtectedError:
            return Response(
                {"detail": "Category still has menu items. Move or delete them first."},
                status=status.HTTP_409_CONFLICT
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============== MENU VIEWS ===============

class MenuItemListCreateView(CapabilityPermissionMixin, generics.ListCreateAPIView):
    """
    get: List menu items with category and stock
    post: Create a menu item; its inventory row is created alongside (manage_menu)
    """
    queryset = MenuItem.objects.select_related('category', 'inventory')
    write_capability = Capabilities.MANAGE_MENU
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['category', 'sub_category', 'is_available']
    search_fields = ['name', 'description', 'category__name']
    ordering_fields = ['name', 'price', 'created_at']
    ordering = ['category__display_order', 'name']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return MenuItemCreateUpdateSerializer
        return MenuItemListSerializer

    def perform_create(self, serializer):
        item = serializer.save()
        logger.info("Menu item %s created by %s", item.name, self.request.user.username)


class MenuItemRetrieveUpdateDestroyView(CapabilityPermissionMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    get: Menu item details
    put/patch: Update menu item (manage_menu)
    delete: Delete a menu item that was never ordered (manage_menu)
    """
    queryset = MenuItem.objects.select_related('category', 'inventory')
    write_capability = Capabilities.MANAGE_MENU

    def get_serializer_class(self):
        if self.request.method in ['PUT', 'PATCH']:
            return MenuItemCreateUpdateSerializer
        return MenuItemListSerializer

    def destroy(self, request, *args, **kwargs):
        item = self.get_object()
        try:
            item.delete()
        except ProtectedError:
            return Response(
                {"detail": "Menu item appears on orders. Mark it unavailable instead."},
                status=status.HTTP_409_CONFLICT
            )
        logger.info("Menu item %s deleted by %s", item.name, request.user.username)
        return Response(status=status.HTTP_204_NO_CONTENT)


@swagger_auto_schema(
    method='post',
    operation_description="Flip the availability of a menu item",
    responses={200: MenuItemListSerializer}
)
@api_view(['POST'])
@permission_classes([HasCapability.of(Capabilities.MANAGE_MENU)])
def toggle_availability(request, pk):
    item = get_object_or_404(MenuItem.objects.select_related('category'), pk=pk)
    item.is_available = not item.is_available
    item.save(update_fields=['is_available', 'updated_at'])
    return Response(MenuItemListSerializer(item).data)


@swagger_auto_schema(
    method='post',
    request_body=BulkAvailabilitySerializer
)
@api_view(['POST'])
@permission_classes([HasCapability.of(Capabilities.MANAGE_MENU)])
def bulk_update_availability(request):
    """Bulk update menu item availability"""
    serializer = BulkAvailabilitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    is_available = serializer.validated_data['is_available']

    updated_count = MenuItem.objects.filter(
        id__in=serializer.validated_data['menu_ids']
    ).update(is_available=is_available, updated_at=timezone.now())
    logger.info("%s set %s menu items available=%s", request.user.username, updated_count, is_available)
    return Response({
        "detail": f"Updated {updated_count} menu items",
        "updated_count": updated_count
    })


# =============== INVENTORY VIEWS ===============

class InventoryListView(generics.ListAPIView):
    """
    List stock per menu item with its derived stock status.

    ``?stock_status=low_stock`` narrows the list to one status.
    """
    serializer_class = InventorySerializer
    permission_classes = [HasCapability.of(Capabilities.MANAGE_INVENTORY)]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['menu_item__category']
    search_fields = ['menu_item__name']
    ordering_fields = ['current_stock', 'menu_item__name', 'last_restocked_at']
    ordering = ['menu_item__name']

    def get_queryset(self):
        queryset = Inventory.objects.select_related('menu_item__category', 'restocked_by')
        wanted = self.request.query_params.get('stock_status')
        if wanted == StockStatus.OUT_OF_STOCK:
            queryset = queryset.filter(current_stock=0)
        elif wanted == StockStatus.LOW_STOCK:
            queryset = queryset.filter(current_stock__gt=0, current_stock__lte=F('low_stock_threshold'))
        elif wanted == StockStatus.IN_STOCK:
            queryset = queryset.filter(current_stock__gt=F('low_stock_threshold'))
        return queryset


class InventoryDetailView(generics.RetrieveUpdateAPIView):
    """
    get: Stock of one menu item
    put/patch: Change the low stock threshold
    """
    queryset = Inventory.objects.select_related('menu_item__category', 'restocked_by')
    serializer_class = InventorySerializer
    permission_classes = [HasCapability.of(Capabilities.MANAGE_INVENTORY)]


@swagger_auto_schema(
    method='post',
    request_body=RestockSerializer,
    responses={200: InventorySerializer}
)
@api_view(['POST'])
@permission_classes([HasCapability.of(Capabilities.MANAGE_INVENTORY)])
def restock_inventory(request, pk):
    get_object_or_404(Inventory, pk=pk)
    serializer = RestockSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    inventory = services.restock(pk, serializer.validated_data['quantity'], user=request.user)
    return Response(InventorySerializer(inventory).data)


@api_view(['GET'])
@permission_classes([HasCapability.of(Capabilities.MANAGE_INVENTORY)])
def inventory_summary(request):
    """Stock overview for the inventory screen"""
    value = ExpressionWrapper(
        F('current_stock') * F('menu_item__price'),
        output_field=DecimalField(max_digits=14, decimal_places=2)
    )
    totals = Inventory.objects.aggregate(
        total_items=Count('id'),
        out_of_stock=Count('id', filter=Q(current_stock=0)),
        low_stock=Count('id', filter=Q(current_stock__gt=0, current_stock__lte=F('low_stock_threshold'))),
        total_stock=Sum('current_stock'),
        stock_value=Sum(value),
    )
    low_items = services.low_stock_queryset().select_related('menu_item__category', 'restocked_by')

    return Response({
        'inventory_stats': {
            'total_items': totals['total_items'],
            'out_of_stock': totals['out_of_stock'],
            'low_stock': totals['low_stock'],
            'in_stock': totals['total_items'] - totals['out_of_stock'] - totals['low_stock'],
            'total_stock': totals['total_stock'] or 0,
            'stock_value': totals['stock_value'] or 0,
        },
        'menu_stats': {
            'total_menu_items': MenuItem.objects.count(),
            'available_menu_items': MenuItem.objects.filter(is_available=True).count(),
            'total_categories': Category.objects.filter(is_active=True).count(),
        },
        'attention': InventorySerializer(low_items, many=True).data,
    })
