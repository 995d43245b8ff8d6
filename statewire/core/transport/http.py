"""HTTP/JSON implementation of WorkflowServiceStub on top of httpx."""

from __future__ import annotations

from typing import Any, Optional, TypeVar

import httpx

from statewire.core.logging import get_logger
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
    WireModel,
)

logger = get_logger('transport')

_RespT = TypeVar('_RespT', bound=WireModel)

START_PATH = '/api/v1/workflow/start'
GET_WITH_WAIT_PATH = '/api/v1/workflow/getWithWait'
SIGNAL_PATH = '/api/v1/workflow/signal'
RESET_PATH = '/api/v1/workflow/reset'
QUERY_ATTRIBUTES_PATH = '/api/v1/workflow/queryattributes/get'


class HttpWorkflowService:
    """
    Calls the orchestration service's JSON API.

    One POST per operation, no retries. Non-2xx responses raise
    `httpx.HTTPStatusError`; connection problems raise `httpx.RequestError`.
    The default timeout is None so that get-with-wait can block for as
    long as the service holds the request.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
        )

    def _post(self, path: str, request: WireModel) -> httpx.Response:
        logger.debug(f'POST {path}')
        response = self._client.post(path, json=request.to_wire())
        response.raise_for_status()
        return response

    def _post_for(
        self, path: str, request: WireModel, response_type: type[_RespT]
    ) -> _RespT:
        response = self._post(path, request)
        body: Any = response.json() if response.content else {}
        return response_type.model_validate(body)

    def start_workflow(self, request: WorkflowStartRequest) -> WorkflowStartResponse:
        return self._post_for(START_PATH, request, WorkflowStartResponse)

    def get_with_wait(self, request: WorkflowGetRequest) -> WorkflowGetResponse:
        return self._post_for(GET_WITH_WAIT_PATH, request, WorkflowGetResponse)

    def signal_workflow(self, request: WorkflowSignalRequest) -> None:
        self._post(SIGNAL_PATH, request)

    def reset_workflow(self, request: WorkflowResetRequest) -> WorkflowResetResponse:
        return self._post_for(RESET_PATH, request, WorkflowResetResponse)

    def get_query_attributes(
        self, request: WorkflowGetQueryAttributesRequest
    ) -> WorkflowGetQueryAttributesResponse:
        return self._post_for(
            QUERY_ATTRIBUTES_PATH, request, WorkflowGetQueryAttributesResponse
        )

    def close(self) -> None:
        """Close the underlying httpx client if this service created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpWorkflowService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
