from django.urls import path

from . import views

app_name = 'waitlist'

urlpatterns = [
    path('signup/', views.signup, name='signup'),
    path('admin-panel/waitlist/', views.admin_waitlist, name='admin_list'),
    path('admin-panel/waitlist/<uuid:entry_id>/approve/', views.approve, name='approve'),
    path('admin-panel/waitlist/<uuid:entry_id>/reject/', views.reject, name='reject'),
    path('admin-panel/waitlist/<uuid:entry_id>/reset/', views.reset, name='reset'),
]
