from django.urls import path
from . import views

urlpatterns = [
    path('dashboard/stats/', views.dashboard_stats, name='dashboard-stats'),

    # Reports
    path('reports/', views.sales_report, name='sales-report'),
    path('reports/export/<str:file_type>/', views.export_report, name='report-export'),

    # Settings
    path('settings/', views.settings_detail, name='settings'),
    path('settings/reset/', views.reset_settings, name='settings-reset'),
]
