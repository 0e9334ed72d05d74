from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    # Floors & Tables
    path('floors/', views.FloorListCreateView.as_view(), name='floor-list'),
    path('floors/<uuid:pk>/', views.FloorDetailView.as_view(), name='floor-detail'),
    path('tables/', views.TableListCreateView.as_view(), name='table-list'),
    path('tables/board/', views.table_board, name='table-board'),
    path('tables/qr-codes/', views.generate_table_qr_codes, name='table-qr-generate'),
    path('tables/qr-sheet/', views.table_qr_sheet, name='table-qr-sheet'),
    path('tables/<uuid:pk>/', views.TableDetailView.as_view(), name='table-detail'),
    path('tables/<uuid:pk>/qr/', views.table_qr_code, name='table-qr'),

    # Orders
    path('orders/', views.OrderListCreateView.as_view(), name='order-list'),
    path('orders/<uuid:pk>/', views.OrderDetailView.as_view(), name='order-detail'),
    path('orders/<uuid:pk>/status/', views.update_order_status, name='order-status'),
    path('orders/<uuid:pk>/kot/', views.order_kot, name='order-kot'),

    # Kitchen
    path('kitchen/', views.kitchen_display, name='kitchen-display'),
    path('kitchen/items/<uuid:item_id>/prepared/', views.set_item_prepared, name='item-prepared'),
    path('kitchen/orders/<uuid:pk>/ready/', views.mark_order_ready, name='order-ready'),

    # Billing
    path('billing/', views.BillingListView.as_view(), name='billing-list'),
    path('billing/<uuid:pk>/pay/', views.pay_order, name='order-pay'),
    path('billing/<uuid:pk>/upi/', views.upi_payment, name='order-upi'),
    path('billing/<uuid:pk>/bill/', views.bill_html, name='order-bill'),
    path('billing/<uuid:pk>/bill.pdf', views.bill_pdf, name='order-bill-pdf'),
]
