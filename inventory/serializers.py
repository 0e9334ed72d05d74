from rest_framework import serializers
from django.db import transaction

from .models import Category, MenuItem, Inventory


class CategorySerializer(serializers.ModelSerializer):
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'display_order', 'is_active', 'items_count', 'created_at']
        read_only_fields = ['created_at', 'items_count']

    def get_items_count(self, obj):
        return obj.items.filter(is_available=True).count()

    def validate_name(self, value):
        value = value.strip()
        queryset = Category.objects.filter(name__iexact=value)
        if self.instance:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError("Category with this name already exists.")
        return value


class MenuItemListSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    current_stock = serializers.IntegerField(source='inventory.current_stock', read_only=True, default=None)
    stock_status = serializers.CharField(source='inventory.stock_status', read_only=True, default=None)

    class Meta:
        model = MenuItem
        fields = [
            'id', 'name', 'description', 'price', 'category', 'category_name',
            'sub_category', 'image_url', 'is_available', 'current_stock', 'stock_status'
        ]


class MenuItemCreateUpdateSerializer(serializers.ModelSerializer):
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.filter(is_active=True))
    initial_stock = serializers.IntegerField(write_only=True, required=False, min_value=0)
    low_stock_threshold = serializers.IntegerField(write_only=True, required=False, min_value=0)

    class Meta:
        model = MenuItem
        fields = [
            'id', 'name', 'description', 'price', 'category', 'sub_category',
            'image_url', 'is_available', 'initial_stock', 'low_stock_threshold'
        ]

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value

    def validate(self, attrs):
        name = attrs.get('name', getattr(self.instance, 'name', None))
        category = attrs.get('category', getattr(self.instance, 'category', None))
        queryset = MenuItem.objects.filter(name__iexact=name, category=category)
        if self.instance:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError({
                'name': "Menu item with this name already exists in this category."
            })
        if self.instance is not None and 'initial_stock' in attrs:
            raise serializers.ValidationError({
                'initial_stock': "Use the restock endpoint to change stock of an existing item."
            })
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        initial_stock = validated_data.pop('initial_stock', 0)
        threshold = validated_data.pop('low_stock_threshold', None)

        menu_item = MenuItem.objects.create(**validated_data)

        # The inventory row already exists through the post_save signal
        inventory = menu_item.inventory
        inventory.current_stock = initial_stock
        inventory.total_quantity = initial_stock
        if threshold is not None:
            inventory.low_stock_threshold = threshold
        inventory.save()
        return menu_item

    def update(self, instance, validated_data):
        threshold = validated_data.pop('low_stock_threshold', None)
        instance = super().update(instance, validated_data)
        if threshold is not None:
            Inventory.objects.filter(menu_item=instance).update(low_stock_threshold=threshold)
        return instance

    def to_representation(self, instance):
        return MenuItemListSerializer(instance, context=self.context).data


class InventorySerializer(serializers.ModelSerializer):
    menu_item_name = serializers.CharField(source='menu_item.name', read_only=True)
    category_name = serializers.CharField(source='menu_item.category.name', read_only=True)
    price = serializers.DecimalField(source='menu_item.price', max_digits=10, decimal_places=2, read_only=True)
    stock_status = serializers.CharField(read_only=True)
    stock_value = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    restocked_by_name = serializers.CharField(source='restocked_by.get_full_name', read_only=True, default=None)

    class Meta:
        model = Inventory
        fields = [
            'id', 'menu_item', 'menu_item_name', 'category_name', 'price',
            'total_quantity', 'current_stock', 'low_stock_threshold', 'stock_status',
            'stock_value', 'last_restocked_at', 'restocked_by', 'restocked_by_name', 'updated_at'
        ]
        read_only_fields = [
            'id', 'menu_item', 'total_quantity', 'current_stock',
            'last_restocked_at', 'restocked_by', 'updated_at'
        ]


class RestockSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class BulkAvailabilitySerializer(serializers.Serializer):
    menu_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    is_available = serializers.BooleanField()
