from django.urls import path
from . import views

app_name = 'public'

urlpatterns = [
    path('<uuid:table_id>/', views.SelfOrderView.as_view(), name='self-order'),
    path('<uuid:table_id>/confirmation/<uuid:order_id>/', views.self_order_confirmation, name='self-order-confirmation'),
]
