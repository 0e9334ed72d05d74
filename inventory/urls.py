from django.urls import path
from . import views


urlpatterns = [
    # Category URLs
    path('categories/', views.CategoryListCreateView.as_view(), name='category-list-create'),
    path('categories/<uuid:pk>/', views.CategoryRetrieveUpdateDestroyView.as_view(), name='category-detail'),

    # Menu URLs
    path('menu/', views.MenuItemListCreateView.as_view(), name='menu-list-create'),
    path('menu/bulk-availability/', views.bulk_update_availability, name='menu-bulk-availability'),
    path('menu/<uuid:pk>/', views.MenuItemRetrieveUpdateDestroyView.as_view(), name='menu-detail'),
    path('menu/<uuid:pk>/toggle-availability/', views.toggle_availability, name='menu-toggle-availability'),

    # Inventory URLs
    path('inventory/', views.InventoryListView.as_view(), name='inventory-list'),
    path('inventory/summary/', views.inventory_summary, name='inventory-summary'),
    path('inventory/<uuid:pk>/', views.InventoryDetailView.as_view(), name='inventory-detail'),
    path('inventory/<uuid:pk>/restock/', views.restock_inventory, name='inventory-restock'),
]
