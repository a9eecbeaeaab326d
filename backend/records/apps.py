import threading

from django.apps import AppConfig


class RecordsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "records"
    verbose_name = "Registros académicos"

    workflow_service = None
    _service_lock = threading.Lock()

    def get_workflow_service(self):
        # Built on first use so settings (storage root, timeouts) are final by then.
        if self.workflow_service is None:
            with self._service_lock:
                if self.workflow_service is None:
                    from .services import RecordWorkflowService  # noqa: PLC0415
                    from .storage import build_blob_store  # noqa: PLC0415

                    self.workflow_service = RecordWorkflowService(build_blob_store())
        return self.workflow_service
