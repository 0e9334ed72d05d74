from rest_framework import generics, status, permissions, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework.exceptions import ValidationError
from django.db import connection, DatabaseError
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiExample
import logging

from .models import CustomUser, Role
from .serializers import (
    UserSerializer, ProfileSerializer, LoginSerializer,
    ChangePasswordSerializer, RoleSerializer
)
from .permissions import (
    CAPABILITIES, ALL_CAPABILITIES, CanManageUsers, IsSelfOrCanManageUsers, capabilities_for
)

logger = logging.getLogger(__name__)


def tokens_for(user):
    """Refresh/access pair carrying the role and capability claims"""
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    refresh['capabilities'] = capabilities_for(user)
    return refresh


# =============== AUTHENTICATION VIEWS ===============

class LoginView(APIView):
    """
    JWT login for restaurant staff.

    Returns an access/refresh pair together with the user, the role and the
    capability list the frontend uses to build its navigation.
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []
    serializer_class = LoginSerializer

    @extend_schema(
        summary="Staff Login",
        description="Authenticate with username and password. Repeated failures lock the account.",
        request=LoginSerializer,
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'refresh': {'type': 'string', 'description': 'JWT refresh token'},
                    'access': {'type': 'string', 'description': 'JWT access token'},
                    'user': {'type': 'object', 'description': 'User information'},
                    'role': {'type': 'string'},
                    'capabilities': {'type': 'array', 'items': {'type': 'string'}},
                }
            },
            400: {'description': 'Invalid credentials or locked account'},
        },
        examples=[
            OpenApiExample(
                'Waiter Login',
                value={"username": "waiter1", "password": "SecurePassword123!"}
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data['user']
        user.register_successful_login()
        refresh = tokens_for(user)
        logger.info("User %s signed in as %s", user.username, user.role)

        return Response({
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'user': UserSerializer(user).data,
            'role': user.role,
            'capabilities': capabilities_for(user),
        }, status=status.HTTP_200_OK)


@extend_schema(
    summary="Logout",
    description="Blacklist the given refresh token so it can no longer be used",
    request={
        'type': 'object',
        'properties': {'refresh': {'type': 'string'}},
        'required': ['refresh']
    },
    responses={205: {'description': 'Logged out'}, 400: {'description': 'Invalid token'}}
)
@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def logout(request):
    refresh = request.data.get('refresh')
    if not refresh:
        return Response({'error': 'refresh token is required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        RefreshToken(refresh).blacklist()
    except TokenError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    logger.info("User %s signed out", request.user.username)
    return Response({'message': 'Logged out'}, status=status.HTTP_205_RESET_CONTENT)


# =============== USER PROFILE ===============

class MyProfileView(generics.RetrieveUpdateAPIView):
    """
    Get and update current user's profile information.
    """
    serializer_class = ProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(summary="Get My Profile")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_object(self):
        return self.request.user


@extend_schema(
    summary="Change Password",
    description="Change the signed in user's password. Requires the current password.",
    request=ChangePasswordSerializer,
    responses={
        200: {'type': 'object', 'properties': {'message': {'type': 'string'}}},
        400: {'description': 'Invalid current password or validation errors'}
    }
)
@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)
    serializer.save()
    logger.info("User %s changed their password", request.user.username)
    return Response({'message': 'Password changed successfully'})


# =============== USER MANAGEMENT ===============

class UserListCreateView(generics.ListCreateAPIView):
    """
    List and create staff accounts. Requires the manage_users capability.
    """
    serializer_class = UserSerializer
    permission_classes = [CanManageUsers]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['role', 'is_active']
    search_fields = ['username', 'full_name', 'email', 'phone']
    ordering_fields = ['username', 'created_at', 'role']

    def get_queryset(self):
        return CustomUser.objects.all()

    @extend_schema(
        summary="Create Staff Account",
        examples=[
            OpenApiExample(
                'New chef',
                value={
                    "username": "chef1",
                    "full_name": "Ravi Kumar",
                    "role": "chef",
                    "password": "SecurePassword123!",
                    "confirm_password": "SecurePassword123!"
                }
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class UserDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    Retrieve, update or deactivate a staff account.

    DELETE only deactivates the account; its orders keep pointing at it.
    """
    serializer_class = UserSerializer
    permission_classes = [IsSelfOrCanManageUsers]
    lookup_url_kwarg = 'user_id'

    def get_queryset(self):
        return CustomUser.objects.all()

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise ValidationError({'error': 'You cannot deactivate your own account'})
        instance.is_active = False
        instance.save(update_fields=['is_active', 'updated_at'])
        logger.info("User %s deactivated by %s", instance.username, self.request.user.username)


# =============== ROLES ===============

@extend_schema(
    summary="Roles and Capabilities",
    description="Every role with the capabilities it grants",
    responses={200: RoleSerializer(many=True)}
)
@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def role_list(request):
    data = [
        {'role': value, 'label': label, 'capabilities': sorted(CAPABILITIES.get(value, []))}
        for value, label in Role.choices
    ]
    return Response({'roles': RoleSerializer(data, many=True).data, 'capabilities': sorted(ALL_CAPABILITIES)})


# =============== SYSTEM HEALTH ===============

@extend_schema(
    summary="System Health Check",
    description="Check system health and database connectivity",
)
@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.error("Health check failed: %s", e)
        return Response({
            'status': 'unhealthy',
            'timestamp': timezone.now().isoformat(),
            'database': 'disconnected',
        }, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response({
        'status': 'healthy',
        'timestamp': timezone.now().isoformat(),
        'database': 'connected',
        'version': '1.0.0'
    })
