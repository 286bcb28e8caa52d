# config/urls.py
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("labs.urls")),
    path("api/", include("reservations.urls")),
    path("api-auth/", include("rest_framework.urls")),
]
