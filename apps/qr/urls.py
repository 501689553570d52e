from django.urls import path

from .views import QRImageView, QRSaveView, ReviewLinkView

app_name = 'qr'

urlpatterns = [
    path('<slug:slug>/', QRImageView.as_view(), name='image'),
    path('<slug:slug>/link/', ReviewLinkView.as_view(), name='link'),
    path('<slug:slug>/save/', QRSaveView.as_view(), name='save'),
]
