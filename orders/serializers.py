from rest_framework import serializers
from django.utils import timezone

from .models import (
    Floor, RestaurantTable, Order, OrderItem, OrderStatus, PaymentMethod, OrderSource
)
from . import services


# =============== FLOORS & TABLES ===============

class FloorSerializer(serializers.ModelSerializer):
    tables_count = serializers.SerializerMethodField()

    class Meta:
        model = Floor
        fields = ['id', 'floor_name', 'floor_number', 'is_active', 'tables_count', 'created_at']
        read_only_fields = ['id', 'created_at']

    def get_tables_count(self, obj):
        return obj.tables.filter(is_active=True).count()


class CurrentOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = ['id', 'order_number', 'customer_name', 'guest_count', 'status', 'total_amount', 'created_at']


class TableSerializer(serializers.ModelSerializer):
    floor_name = serializers.CharField(source='floor.floor_name', read_only=True)
    current_order = CurrentOrderSerializer(read_only=True)

    class Meta:
        model = RestaurantTable
        fields = [
            'id', 'floor', 'floor_name', 'table_number', 'capacity', 'status',
            'qr_code_url', 'current_order', 'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'qr_code_url', 'current_order', 'created_at', 'updated_at']

    def validate_table_number(self, value):
        return value.strip()

    def validate(self, attrs):
        floor = attrs.get('floor', getattr(self.instance, 'floor', None))
        number = attrs.get('table_number', getattr(self.instance, 'table_number', None))
        queryset = RestaurantTable.objects.filter(floor=floor, table_number=number)
        if self.instance:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError({'table_number': "This floor already has a table with that number."})
        if self.instance is not None and self.instance.current_order_id and 'status' in attrs \
                and attrs['status'] != self.instance.status:
            raise serializers.ValidationError({'status': "Table has an open order; its status follows the order."})
        return attrs


# =============== ORDER ITEMS ===============

class OrderItemReadSerializer(serializers.ModelSerializer):
    menu_item_name = serializers.CharField(source='menu_item.name', read_only=True)
    category_name = serializers.CharField(source='menu_item.category.name', read_only=True)
    sub_category = serializers.CharField(source='menu_item.sub_category', read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'menu_item', 'menu_item_name', 'category_name', 'sub_category',
            'quantity', 'unit_price', 'total_price', 'modifiers',
            'is_prepared', 'prepared_at'
        ]


class OrderItemCreateSerializer(serializers.Serializer):
    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    modifiers = serializers.CharField(required=False, allow_blank=True, default='')


class ItemPreparedSerializer(serializers.Serializer):
    is_prepared = serializers.BooleanField()


# =============== ORDERS ===============

class OrderReadSerializer(serializers.ModelSerializer):
    table_number = serializers.CharField(source='table.table_number', read_only=True)
    floor_name = serializers.CharField(source='table.floor.floor_name', read_only=True)
    created_by_name = serializers.CharField(source='waiter_name', read_only=True)
    items = OrderItemReadSerializer(many=True, read_only=True)
    progress = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'table', 'table_number', 'floor_name',
            'customer_name', 'guest_count', 'room_number', 'guest_name',
            'subtotal', 'tax_rate', 'tax_amount', 'total_amount',
            'status', 'payment_method', 'payment_status', 'source',
            'created_by', 'created_by_name', 'items', 'progress',
            'paid_at', 'completed_at', 'created_at', 'updated_at'
        ]

    def get_progress(self, obj):
        return services.order_progress(obj)


class KitchenOrderSerializer(OrderReadSerializer):
    priority = serializers.SerializerMethodField()
    minutes_waiting = serializers.SerializerMethodField()

    class Meta(OrderReadSerializer.Meta):
        fields = OrderReadSerializer.Meta.fields + ['priority', 'minutes_waiting']

    def get_priority(self, obj):
        return services.order_priority(obj.created_at, self.context.get('now'))

    def get_minutes_waiting(self, obj):
        now = self.context.get('now') or timezone.now()
        return int((now - obj.created_at).total_seconds() // 60)


class OrderCreateSerializer(serializers.Serializer):
    table_id = serializers.UUIDField()
    customer_name = serializers.CharField(max_length=255)
    guest_count = serializers.IntegerField(min_value=1, default=1)
    items = OrderItemCreateSerializer(many=True, allow_empty=False)

    def validate_customer_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Customer name is required.")
        return value

    def create(self, validated_data):
        request = self.context.get('request')
        source = self.context.get('source', OrderSource.STAFF)
        return services.place_order(
            table_id=validated_data.get('table_id', self.context.get('table_id')),
            customer_name=validated_data['customer_name'],
            guest_count=validated_data['guest_count'],
            items=validated_data['items'],
            source=source,
            user=request.user if request is not None and source == OrderSource.STAFF else None,
        )


class SelfOrderSerializer(OrderCreateSerializer):
    """Table comes from the URL of the scanned QR code"""
    table_id = None


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class PaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    room_number = serializers.CharField(required=False, allow_blank=True, default='')
    guest_name = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['payment_method'] == PaymentMethod.CREDIT:
            errors = {}
            if not attrs.get('room_number', '').strip():
                errors['room_number'] = "Room number is required for credit payments."
            if not attrs.get('guest_name', '').strip():
                errors['guest_name'] = "Guest name is required for credit payments."
            if errors:
                raise serializers.ValidationError(errors)
        return attrs
