from rest_framework import serializers
import re

from .models import RestaurantSettings, SystemSettings
from . import reports


class RestaurantSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = RestaurantSettings
        exclude = ['id']
        read_only_fields = ['created_at', 'updated_at']

    def validate_upi_id(self, value):
        value = value.strip()
        if '@' not in value:
            raise serializers.ValidationError("UPI id must look like name@bank.")
        return value

    def validate_currency(self, value):
        return value.upper()


class SystemSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = SystemSettings
        exclude = ['id']
        read_only_fields = ['created_at', 'updated_at']


class ReportQuerySerializer(serializers.Serializer):
    """Query parameters of the report endpoints, resolved to a date range"""
    report_type = serializers.ChoiceField(choices=reports.REPORT_TYPES, default='daily')
    date = serializers.DateField(required=False)
    month = serializers.CharField(required=False)
    year = serializers.IntegerField(required=False, min_value=2000, max_value=2100)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    period = serializers.ChoiceField(choices=reports.PERIODS, required=False)

    def validate_month(self, value):
        if not re.match(r'^\d{4}-(0[1-9]|1[0-2])$', value):
            raise serializers.ValidationError("Month must be YYYY-MM.")
        return value

    def validate(self, attrs):
        try:
            first_day, last_day = reports.date_range(
                attrs['report_type'],
                day=attrs.get('date'),
                month=attrs.get('month'),
                year=attrs.get('year'),
                start_date=attrs.get('start_date'),
                end_date=attrs.get('end_date'),
            )
        except ValueError as e:
            raise serializers.ValidationError(str(e))
        attrs['first_day'] = first_day
        attrs['last_day'] = last_day
        return attrs
