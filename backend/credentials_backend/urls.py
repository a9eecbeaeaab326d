"""
URL configuration for credentials_backend project.

Session credentials are issued by SimpleJWT (`/api/token/`); everything under
`/api/public/` is reachable without authentication.
"""

from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
)

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/", include("users.urls")),
    path("api/records/", include("records.urls")),
    path("api/public/", include("records.public_urls")),
    path("api/public/", include("users.public_urls")),
]
