from django.urls import path

from .views import (
    AllRecordsAPIView,
    CheckHashAPIView,
    InstitutionRecordsAPIView,
    MyRecordsAPIView,
    PendingRecordsAPIView,
    RecordDecisionAPIView,
    RecordDetailAPIView,
    RecordSubmitAPIView,
    StudentRecordsAPIView,
)

urlpatterns = [
    path("", RecordSubmitAPIView.as_view(), name="records-submit"),
    path("my-records/", MyRecordsAPIView.as_view(), name="records-mine"),
    path("pending/", PendingRecordsAPIView.as_view(), name="records-pending"),
    path("student/<int:student_id>/", StudentRecordsAPIView.as_view(), name="records-by-student"),
    path("institution/", InstitutionRecordsAPIView.as_view(), name="records-by-institution-self"),
    path("institution/<int:institution_id>/", InstitutionRecordsAPIView.as_view(), name="records-by-institution"),
    path("admin/all/", AllRecordsAPIView.as_view(), name="records-all"),
    path("verify/<int:pk>/", RecordDecisionAPIView.as_view(), name="records-decide"),
    path("check-hash/<str:fingerprint>/", CheckHashAPIView.as_view(), name="records-check-hash"),
    path("<int:pk>/", RecordDetailAPIView.as_view(), name="records-detail"),
]
