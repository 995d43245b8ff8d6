"""Typed client for the workflow orchestration service.

Every operation follows the same pipeline:

1. validate the call against the Registry (no RPC on failure)
2. encode payloads with the PayloadCodec
3. issue exactly one call on the service stub
4. shape and decode the response

Transport errors raised by the stub propagate unchanged; this layer
never retries.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Sequence, TypeVar, Union

from pydantic import TypeAdapter

from statewire.core.codec.serde import ANY, PayloadCodec
from statewire.core.errors import (
    ClientValidationError,
    InvalidStartStateError,
    MalformedServerResponseError,
    MissingOutputError,
    MultipleCompletionStatesError,
    SignalChannelNotRegisteredError,
    SignalTypeMismatchError,
    UnknownQueryAttributesError,
    WorkflowTypeNotRegisteredError,
)
from statewire.core.logging import get_logger
from statewire.core.models.api import (
    ResetSpec,
    StateCompletionOutput,
    WorkflowGetQueryAttributesRequest,
    WorkflowGetRequest,
    WorkflowResetRequest,
    WorkflowSignalRequest,
    WorkflowStartRequest,
)
from statewire.core.models.options import ClientOptions, WorkflowStartOptions
from statewire.core.registry.workflows import Registry
from statewire.core.transport.base import WorkflowServiceStub
from statewire.core.transport.http import HttpWorkflowService

logger = get_logger('client')

T = TypeVar('T')

_RESET_SPEC_ADAPTER: TypeAdapter[Any] = TypeAdapter(ResetSpec)


class ResultMode(str, Enum):
    """How get_workflow_result shapes the completion outputs."""

    SIMPLE = 'SIMPLE'
    """Zero or one completion state; return its decoded output"""

    COMPLEX = 'COMPLEX'
    """Any number of completion states; return the raw outputs"""


class Client:
    """
    Validating client for remote workflows declared in a Registry.

    The client holds no mutable state, so one instance can be shared by
    any number of threads.

    Args:
        registry: Workflow type models, built once at startup.
        options: Connection settings. Defaults to `ClientOptions()`.
        service: RPC stub. Defaults to an `HttpWorkflowService` for
            `options.server_url`, which the client then owns and closes.
        codec: Payload codec. Defaults to `PayloadCodec()`.
    """

    def __init__(
        self,
        registry: Registry,
        options: Optional[ClientOptions] = None,
        *,
        service: Optional[WorkflowServiceStub] = None,
        codec: Optional[PayloadCodec] = None,
    ) -> None:
        self._registry = registry
        self._options = options or ClientOptions()
        self._codec = codec or PayloadCodec()
        self._owned_service: Optional[HttpWorkflowService] = None
        if service is None:
            self._owned_service = HttpWorkflowService(
                self._options.server_url,
                timeout=self._options.request_timeout_seconds,
            )
            service = self._owned_service
        self._service: WorkflowServiceStub = service

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def codec(self) -> PayloadCodec:
        """Codec used for payloads; use it to decode complex results."""
        return self._codec

    def close(self) -> None:
        """Close the HTTP service if this client created it."""
        if self._owned_service is not None:
            self._owned_service.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _rejected(self, error: ClientValidationError) -> ClientValidationError:
        logger.warning(f'Rejected call before RPC: {error.message}')
        return error

    # ─── start ───────────────────────────────────────────────────────

    def start_workflow(
        self,
        workflow_type: str,
        start_state_id: str,
        workflow_id: str,
        options: Optional[WorkflowStartOptions] = None,
        state_input: Any = None,
    ) -> str:
        """
        Start a workflow run from `start_state_id`.

        Returns:
            The run id assigned by the service.

        Raises:
            InvalidStartStateError: The state is not declared for
                `workflow_type` or is not a starting state.
        """
        state = self._registry.state_descriptor(workflow_type, start_state_id)
        if state is None or not state.can_start:
            raise self._rejected(
                InvalidStartStateError(
                    workflow_type, start_state_id, declared=state is not None
                )
            )

        if options is None:
            options = WorkflowStartOptions(
                workflow_timeout_seconds=self._options.default_workflow_timeout_seconds
            )

        request = WorkflowStartRequest(
            workflow_id=workflow_id,
            iwf_worker_url=self._options.worker_url,
            iwf_workflow_type=workflow_type,
            workflow_timeout_seconds=options.workflow_timeout_seconds,
            state_input=self._codec.encode(state_input),
            start_state_id=start_state_id,
        )
        logger.debug(
            f"Starting workflow '{workflow_id}' of type '{workflow_type}' "
            f"at state '{start_state_id}'"
        )
        response = self._service.start_workflow(request)
        if response.workflow_run_id is None:
            raise MalformedServerResponseError('start', 'workflowRunId')
        return response.workflow_run_id

    # ─── results ─────────────────────────────────────────────────────

    def get_workflow_result(
        self,
        workflow_id: str,
        run_id: Optional[str] = None,
        *,
        mode: ResultMode = ResultMode.SIMPLE,
        result_type: Any = Any,
    ) -> Any:
        """
        Wait for the run to complete and return its result.

        The service holds the request until the run reaches a completion
        state or its own timeout elapses; there is no polling here.

        In SIMPLE mode, returns the decoded output of the single
        completion state, or None when there is none. In COMPLEX mode,
        returns every `StateCompletionOutput` undecoded.

        Raises:
            MultipleCompletionStatesError: SIMPLE mode, more than one completion.
            MissingOutputError: SIMPLE mode, the completion carries no output.
        """
        logger.debug(f"Waiting for result of workflow '{workflow_id}'")
        response = self._service.get_with_wait(
            WorkflowGetRequest(
                workflow_id=workflow_id,
                workflow_run_id=run_id,
                needs_results=True,
            )
        )
        results = response.results or []

        if ResultMode(mode) is ResultMode.COMPLEX:
            return list(results)

        if not results:
            return None
        if len(results) > 1:
            raise MultipleCompletionStatesError(workflow_id, len(results))
        output = results[0]
        if output.completed_state_output is None:
            raise MissingOutputError(workflow_id, output.completed_state_id)
        return self._codec.decode(output.completed_state_output, result_type)

    def get_simple_workflow_result_with_wait(
        self,
        result_type: type[T],
        workflow_id: str,
        run_id: Optional[str] = None,
    ) -> Optional[T]:
        """For the common case of a workflow with one completion state."""
        return self.get_workflow_result(
            workflow_id, run_id, mode=ResultMode.SIMPLE, result_type=result_type
        )

    def get_complex_workflow_result_with_wait(
        self,
        workflow_id: str,
        run_id: Optional[str] = None,
    ) -> list[StateCompletionOutput]:
        """
        For workflows that may complete in more than one state.

        Decode each output with `client.codec.decode(output, <type>)`.
        """
        return self.get_workflow_result(workflow_id, run_id, mode=ResultMode.COMPLEX)

    # ─── signal ──────────────────────────────────────────────────────

    def signal_workflow(
        self,
        workflow_type: str,
        workflow_id: str,
        run_id: Optional[str],
        channel_name: str,
        value: Any,
    ) -> None:
        """
        Send `value` on a declared signal channel.

        Raises:
            WorkflowTypeNotRegisteredError
            SignalChannelNotRegisteredError
            SignalTypeMismatchError: `value` is not accepted by the channel's type.
        """
        channel_types = self._registry.signal_channel_types(workflow_type)
        if channel_types is None:
            raise self._rejected(WorkflowTypeNotRegisteredError(workflow_type))

        value_type = channel_types.get(channel_name)
        if value_type is None:
            raise self._rejected(
                SignalChannelNotRegisteredError(workflow_type, channel_name)
            )

        if not value_type.accepts(value):
            raise self._rejected(
                SignalTypeMismatchError(
                    channel_name, value_type.name, type(value).__qualname__
                )
            )

        logger.debug(f"Signalling workflow '{workflow_id}' on '{channel_name}'")
        self._service.signal_workflow(
            WorkflowSignalRequest(
                workflow_id=workflow_id,
                workflow_run_id=run_id,
                signal_channel_name=channel_name,
                signal_value=self._codec.encode(value),
            )
        )

    # ─── reset ───────────────────────────────────────────────────────

    def reset_workflow(
        self,
        workflow_id: str,
        run_id: Optional[str],
        reset: Union[ResetSpec, dict[str, Any]],
        reason: str = '',
        skip_signal_reapply: bool = False,
    ) -> str:
        """
        Fork a new run from a point in the history of `run_id`.

        The fields of the chosen reset variant are forwarded as given;
        the service decides which fields each reset type requires.

        Returns:
            The run id of the new run.
        """
        spec = _RESET_SPEC_ADAPTER.validate_python(reset)
        request = WorkflowResetRequest(
            workflow_id=workflow_id,
            workflow_run_id=run_id,
            reason=reason,
            skip_signal_reapply=skip_signal_reapply,
            **spec.model_dump(exclude_none=True),
        )
        logger.debug(f"Resetting workflow '{workflow_id}' ({request.reset_type.value})")
        response = self._service.reset_workflow(request)
        if response.workflow_run_id is None:
            raise MalformedServerResponseError('reset', 'workflowRunId')
        return response.workflow_run_id

    # ─── query attributes ────────────────────────────────────────────

    def get_query_attributes(
        self,
        workflow_type: str,
        workflow_id: str,
        run_id: Optional[str],
        keys: Optional[Sequence[str]] = None,
    ) -> dict[str, Any]:
        """
        Read query attributes, decoded with their registered types.

        Empty or absent `keys` reads every attribute. Attributes without a
        value yet are left out of the result.

        Raises:
            WorkflowTypeNotRegisteredError
            UnknownQueryAttributesError: lists every unregistered key.
            MalformedServerResponseError: the response has no attribute list.
        """
        attribute_types = self._registry.query_attribute_types(workflow_type)
        if attribute_types is None:
            raise self._rejected(WorkflowTypeNotRegisteredError(workflow_type))

        attribute_keys = list(keys) if keys else None
        if attribute_keys:
            missing = [k for k in attribute_keys if k not in attribute_types]
            if missing:
                raise self._rejected(
                    UnknownQueryAttributesError(workflow_type, missing)
                )

        logger.debug(f"Querying attributes of workflow '{workflow_id}'")
        response = self._service.get_query_attributes(
            WorkflowGetQueryAttributesRequest(
                workflow_id=workflow_id,
                workflow_run_id=run_id,
                attribute_keys=attribute_keys,
            )
        )
        if response.query_attributes is None:
            raise MalformedServerResponseError('query attributes', 'queryAttributes')

        result: dict[str, Any] = {}
        for kv in response.query_attributes:
            if kv.value is None:
                continue
            value_type = attribute_types.get(kv.key)
            if value_type is None:
                logger.warning(
                    f"Service returned unregistered query attribute '{kv.key}' "
                    f"for workflow type '{workflow_type}'; decoding as Any"
                )
                value_type = ANY
            result[kv.key] = self._codec.decode(kv.value, value_type)
        return result

    def get_all_query_attributes(
        self,
        workflow_type: str,
        workflow_id: str,
        run_id: Optional[str] = None,
    ) -> dict[str, Any]:
        return self.get_query_attributes(workflow_type, workflow_id, run_id, keys=None)
