"""Upload metrics recorded through OpenTelemetry instruments.

The component is built once per application from a ``MeterProvider`` and
handed to the upload service; nothing here is module-level state.
"""

from opentelemetry.metrics import MeterProvider
from opentelemetry.sdk.metrics import MeterProvider as SdkMeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from document_upload.config import Settings

METER_NAME = "document_upload.metrics"
METER_VERSION = "1.0.0"


def build_meter_provider(settings: Settings, extra_readers: list[MetricReader] | None = None) -> SdkMeterProvider:
    readers: list[MetricReader] = list(extra_readers or [])
    if settings.telemetry_enabled and settings.enable_console_exporter:
        readers.append(
            PeriodicExportingMetricReader(
                ConsoleMetricExporter(),
                export_interval_millis=settings.metrics_export_interval_ms,
            )
        )
    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "service.version": settings.service_version,
        }
    )
    return SdkMeterProvider(resource=resource, metric_readers=readers)


class UploadMetrics:
    def __init__(self, meter_provider: MeterProvider):
        meter = meter_provider.get_meter(METER_NAME, METER_VERSION)
        self._uploads = meter.create_counter(
            "document_uploads_total", unit="count", description="Total number of document uploads"
        )
        self._errors = meter.create_counter(
            "document_upload_errors_total", unit="count", description="Total number of document upload errors"
        )
        self._duration = meter.create_histogram(
            "document_upload_duration", unit="milliseconds", description="Duration of document upload operations"
        )
        self._size = meter.create_counter(
            "document_upload_size_bytes", unit="bytes", description="Total size of uploaded documents in bytes"
        )

    def record_upload(self, file_type: str, file_size: int, duration_ms: float) -> None:
        labels = {"file_type": file_type, "status": "success"}
        self._uploads.add(1, labels)
        self._size.add(file_size, labels)
        self._duration.record(duration_ms, labels)

    def record_upload_error(self, file_type: str, error_type: str) -> None:
        self._errors.add(1, {"file_type": file_type, "error_type": error_type, "status": "error"})

    def record_validation_error(self, file_type: str, validation_error: str) -> None:
        self._errors.add(
            1,
            {"file_type": file_type, "validation_error": validation_error, "status": "validation_failed"},
        )
