from django.urls import path

from .views_public import PublicRecordFileAPIView

urlpatterns = [
    path("records/files/<str:token>/", PublicRecordFileAPIView.as_view(), name="public-record-file"),
]
