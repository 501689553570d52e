from django.urls import path

from . import views

app_name = 'reviews'

urlpatterns = [
    path('<slug:slug>', views.review_page, name='page'),
    path('<slug:slug>/draft/', views.draft_api, name='draft'),
    path('<slug:slug>/google/', views.open_google_review, name='google'),
]
