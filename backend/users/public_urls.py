from django.urls import path

from .views import PublicInstitutionListView

urlpatterns = [
    path("institutions/", PublicInstitutionListView.as_view(), name="public-institutions"),
]
