from django.urls import path

from . import views

app_name = 'businesses'

urlpatterns = [
    path('', views.index, name='index'),
    path('add/', views.add_business, name='add'),
    path('b/<uuid:business_id>/description/', views.edit_description, name='edit_description'),
    path('admin-panel/businesses/', views.admin_businesses, name='admin_list'),
    path('admin-panel/businesses/<uuid:business_id>/delete/', views.admin_delete_business, name='admin_delete'),
]
