"""URL configuration for reviewpasta project."""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    # Django admin
    path('admin/', admin.site.urls),

    # Auth
    path('accounts/', include('apps.accounts.urls', namespace='accounts')),

    # Language switch
    path('i18n/', include('django.conf.urls.i18n')),

    # Review page + drafts (guest flow)
    path('review/', include('apps.reviews.urls', namespace='reviews')),

    # QR codes
    path('qr/', include('apps.qr.urls', namespace='qr')),

    # Waitlist signup and admin approval
    path('', include('apps.waitlist.urls', namespace='waitlist')),

    # Business list, add, edit, admin table
    path('', include('apps.businesses.urls', namespace='businesses')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
