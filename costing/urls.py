from django.urls import path

from . import views

urlpatterns = [
    path('import/validate/', views.import_validate_view, name='import_validate'),
    path('import/purchases/', views.purchase_import_view, name='purchase_import'),
    path('import/materials/', views.material_import_view, name='material_import'),
    path('purchases/', views.purchase_list_view, name='purchase_list'),
    path('materials/', views.material_list_view, name='material_list'),
    path('sheets/', views.sheet_list_view, name='sheet_list'),
    path('sheets/totals/', views.sheet_totals_view, name='sheet_totals'),
    path('sheets/<str:sheet_id>/', views.sheet_save_view, name='sheet_save'),
    path('sheets/<str:sheet_id>/summary/', views.sheet_summary_view, name='sheet_summary'),
    path('boms/', views.bom_list_view, name='bom_list'),
    path('boms/costs/', views.bom_costs_view, name='bom_costs'),
    path('boms/<str:bom_id>/', views.bom_delete_view, name='bom_delete'),
    path('settings/', views.settings_view, name='app_settings'),
    path('demo/', views.demo_seed_view, name='demo_seed'),
]
