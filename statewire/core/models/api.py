"""Request/response shapes exchanged with the orchestration service.

Field names are snake_case in Python and camelCase on the wire.
Absent optional fields are omitted from the serialized request.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra='ignore',
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON body sent to the service."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


# =============================================================================
# Start
# =============================================================================


class WorkflowStartRequest(WireModel):
    workflow_id: str
    iwf_worker_url: str
    iwf_workflow_type: str
    workflow_timeout_seconds: int
    start_state_id: str
    state_input: Optional[str] = None


class WorkflowStartResponse(WireModel):
    workflow_run_id: Optional[str] = None


# =============================================================================
# Get with wait
# =============================================================================


class WorkflowStatus(str, Enum):
    """Run status reported by the service alongside results."""

    RUNNING = 'RUNNING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'
    TIMEOUT = 'TIMEOUT'
    CANCELED = 'CANCELED'
    TERMINATED = 'TERMINATED'
    CONTINUED_AS_NEW = 'CONTINUED_AS_NEW'


class StateCompletionOutput(WireModel):
    """Output of one completion state of a workflow run."""

    completed_state_id: str
    completed_state_output: Optional[str] = None


class WorkflowGetRequest(WireModel):
    workflow_id: str
    workflow_run_id: Optional[str] = None
    needs_results: bool = True


class WorkflowGetResponse(WireModel):
    workflow_run_id: Optional[str] = None
    workflow_status: Optional[WorkflowStatus] = None
    results: Optional[List[StateCompletionOutput]] = None


# =============================================================================
# Signal
# =============================================================================


class WorkflowSignalRequest(WireModel):
    workflow_id: str
    workflow_run_id: Optional[str] = None
    signal_channel_name: str
    signal_value: Optional[str] = None


# =============================================================================
# Reset
# =============================================================================


class ResetType(str, Enum):
    """Strategy used to pick the history point a reset forks from."""

    HISTORY_EVENT_ID = 'HistoryEventId'
    BAD_BINARY = 'BadBinary'
    DECISION_COMPLETED_TIME = 'DecisionCompletedTime'
    LAST_DECISION_COMPLETED = 'LastDecisionCompleted'


class HistoryEventIdReset(WireModel):
    """Fork from an event id; the event itself is excluded from the new run."""

    reset_type: Literal[ResetType.HISTORY_EVENT_ID] = ResetType.HISTORY_EVENT_ID
    history_event_id: int


class BadBinaryReset(WireModel):
    """Fork from before the first decision made by a bad binary."""

    reset_type: Literal[ResetType.BAD_BINARY] = ResetType.BAD_BINARY
    reset_bad_binary_checksum: str


class DecisionCompletedTimeReset(WireModel):
    """
    Fork from the first decision completed after `earliest_time`.

    Accepts an RFC3339 timestamp ('2006-01-02T15:04:05+07:00'), raw UnixNano,
    or a range such as '15m' or '2hour' meaning "within the last ...".
    """

    reset_type: Literal[ResetType.DECISION_COMPLETED_TIME] = (
        ResetType.DECISION_COMPLETED_TIME
    )
    earliest_time: str


class LastDecisionCompletedReset(WireModel):
    """Fork from the last completed decision, optionally moved back by a negative offset."""

    reset_type: Literal[ResetType.LAST_DECISION_COMPLETED] = (
        ResetType.LAST_DECISION_COMPLETED
    )
    decision_offset: int = 0


ResetSpec = Annotated[
    Union[
        HistoryEventIdReset,
        BadBinaryReset,
        DecisionCompletedTimeReset,
        LastDecisionCompletedReset,
    ],
    Field(discriminator='reset_type'),
]


class WorkflowResetRequest(WireModel):
    workflow_id: str
    workflow_run_id: Optional[str] = None
    reset_type: ResetType
    history_event_id: Optional[int] = None
    reset_bad_binary_checksum: Optional[str] = None
    earliest_time: Optional[str] = None
    decision_offset: Optional[int] = None
    reason: Optional[str] = None
    skip_signal_reapply: bool = False


class WorkflowResetResponse(WireModel):
    workflow_run_id: Optional[str] = None


# =============================================================================
# Query attributes
# =============================================================================


class KeyValue(WireModel):
    key: str
    value: Optional[str] = None


class WorkflowGetQueryAttributesRequest(WireModel):
    workflow_id: str
    workflow_run_id: Optional[str] = None
    attribute_keys: Optional[List[str]] = None


class WorkflowGetQueryAttributesResponse(WireModel):
    workflow_run_id: Optional[str] = None
    query_attributes: Optional[List[KeyValue]] = None
