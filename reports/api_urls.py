from django.urls import path

from .views import FeedConversionReportView

app_name = "reports-api"

urlpatterns = [
    path("fcr/", FeedConversionReportView.as_view(), name="fcr"),
]
