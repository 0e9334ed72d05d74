from rest_framework import serializers
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
import logging

from dashboard.models import SystemSettings
from .models import CustomUser, Role
from .permissions import capabilities_for

logger = logging.getLogger(__name__)


class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password], required=False)
    confirm_password = serializers.CharField(write_only=True, required=False)
    capabilities = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            'id', 'username', 'full_name', 'email', 'phone', 'role',
            'password', 'confirm_password', 'is_active', 'capabilities',
            'last_login_at', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'last_login_at', 'created_at', 'updated_at']

    def get_capabilities(self, obj):
        return capabilities_for(obj)

    def validate(self, attrs):
        if 'password' in attrs and attrs['password'] != attrs.get('confirm_password', attrs['password']):
            raise serializers.ValidationError("Passwords don't match")
        if self.instance is None and not attrs.get('password'):
            raise serializers.ValidationError({'password': 'This field is required.'})
        return attrs

    def validate_role(self, value):
        request = self.context.get('request')
        # Only super admins hand out the super admin role
        if value == Role.SUPER_ADMIN and request is not None and not (
            request.user.is_superuser or request.user.role == Role.SUPER_ADMIN
        ):
            raise serializers.ValidationError("Only a super admin can grant the super admin role")
        return value

    @transaction.atomic
    def create(self, validated_data):
        validated_data.pop('confirm_password', None)
        password = validated_data.pop('password')
        user = CustomUser(**validated_data)
        user.set_password(password)
        user.save()
        logger.info("User %s created with role %s", user.username, user.role)
        return user

    def update(self, instance, validated_data):
        validated_data.pop('confirm_password', None)
        password = validated_data.pop('password', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)

        if password:
            instance.set_password(password)

        instance.save()
        return instance


class ProfileSerializer(serializers.ModelSerializer):
    """Self service profile: staff cannot change their own role or status"""
    capabilities = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            'id', 'username', 'full_name', 'email', 'phone', 'role',
            'is_active', 'capabilities', 'last_login_at'
        ]
        read_only_fields = ['id', 'username', 'role', 'is_active', 'last_login_at']

    def get_capabilities(self, obj):
        return capabilities_for(obj)


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate(self, attrs):
        username = attrs.get('username')
        password = attrs.get('password')

        if not username or not password:
            raise serializers.ValidationError('Username and password are required')

        account = CustomUser.objects.filter(username=username).first()
        if account is not None and account.is_locked:
            logger.warning("Login refused for locked account %s", username)
            raise serializers.ValidationError(
                'Account is temporarily locked after too many failed attempts'
            )

        user = authenticate(username=username, password=password)
        if not user:
            if account is not None and account.is_active:
                system = SystemSettings.load()
                account.register_failed_login(system.max_login_attempts, system.lockout_minutes)
            logger.warning("Failed login for %s", username)
            raise serializers.ValidationError('Invalid username or password')

        if not user.is_active:
            raise serializers.ValidationError('User account is disabled')

        attrs['user'] = user
        return attrs


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect')
        return value

    def save(self, **kwargs):
        user = self.context['request'].user
        user.set_password(self.validated_data['new_password'])
        user.save(update_fields=['password', 'updated_at'])
        return user


class RoleSerializer(serializers.Serializer):
    role = serializers.CharField()
    label = serializers.CharField()
    capabilities = serializers.ListField(child=serializers.CharField())
