"""Failures raised by the ingestion pipeline.

Validation failures are terminal for a message. Store failures may be retried by the
caller; the pipeline itself retries a write at most once.
"""

from __future__ import annotations


class IngestError(Exception):
    pass


class ValidationFailure(IngestError):
    pass


class EmptyMeasurements(ValidationFailure):
    def __init__(self) -> None:
        super().__init__("No measurements provided in message, ignoring")


class RelayNotFound(ValidationFailure):
    def __init__(self, relay_id: str) -> None:
        super().__init__(f"Relay not found: {relay_id}")
        self.relay_id = relay_id


class RelayInactive(ValidationFailure):
    def __init__(self, relay_id: str) -> None:
        super().__init__(
            f"Reporting device {relay_id} is not active, will not record sensor reading"
        )
        self.relay_id = relay_id


class AccountMismatch(ValidationFailure):
    def __init__(self, *, sensor_account_id: str, relay_account_id: str) -> None:
        super().__init__("Sensor and Relay use different account IDs, ignoring")
        self.sensor_account_id = sensor_account_id
        self.relay_account_id = relay_account_id


class StoreFailure(IngestError):
    def __init__(self, message: str, *, partition: str | None = None) -> None:
        super().__init__(message)
        self.partition = partition


class TransientStoreFailure(StoreFailure):
    pass


class PartitionMissing(StoreFailure):
    pass


class SerializationFailure(IngestError):
    pass
