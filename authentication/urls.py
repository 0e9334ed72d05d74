from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views

urlpatterns = [
    # =============== AUTHENTICATION ===============
    path('auth/login/', views.LoginView.as_view(), name='login'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('auth/logout/', views.logout, name='logout'),

    # =============== USER PROFILE ===============
    path('profile/', views.MyProfileView.as_view(), name='my_profile'),
    path('profile/change-password/', views.change_password, name='change_password'),

    # =============== USER MANAGEMENT ===============
    path('users/', views.UserListCreateView.as_view(), name='user_list_create'),
    path('users/<uuid:user_id>/', views.UserDetailView.as_view(), name='user_detail'),
    path('roles/', views.role_list, name='role_list'),

    # =============== SYSTEM ===============
    path('health/', views.health_check, name='health_check'),
]
