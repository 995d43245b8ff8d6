"""Interface of the orchestration-service RPC stub used by the Client."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from statewire.core.models.api import (
    WorkflowGetQueryAttributesRequest,
    WorkflowGetQueryAttributesResponse,
    WorkflowGetRequest,
    WorkflowGetResponse,
    WorkflowResetRequest,
    WorkflowResetResponse,
    WorkflowSignalRequest,
    WorkflowStartRequest,
    WorkflowStartResponse,
)


@runtime_checkable
class WorkflowServiceStub(Protocol):
    """One method per remote operation.

    Each method performs exactly one call. Implementations own retries,
    timeouts and cancellation; failures are raised as-is and the Client
    does not catch them.
    """

    def start_workflow(self, request: WorkflowStartRequest) -> WorkflowStartResponse: ...

    def get_with_wait(self, request: WorkflowGetRequest) -> WorkflowGetResponse:
        """Block at the service until the run completes or the service times out."""
        ...

    def signal_workflow(self, request: WorkflowSignalRequest) -> None: ...

    def reset_workflow(self, request: WorkflowResetRequest) -> WorkflowResetResponse: ...

    def get_query_attributes(
        self, request: WorkflowGetQueryAttributesRequest
    ) -> WorkflowGetQueryAttributesResponse: ...
