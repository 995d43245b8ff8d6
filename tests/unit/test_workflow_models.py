"""Unit tests for workflow type model declarations."""

from __future__ import annotations

import pytest

from statewire.core.codec.serde import TypeDescriptor
from statewire.core.errors import (
    ErrorCode,
    MultipleValidationErrors,
    WorkflowDefinitionError,
)
from statewire.core.models.workflow import (
    QueryAttributeDef,
    SignalChannelDef,
    StateDef,
    WorkflowTypeModel,
)
from tests.helpers.workflows import ORDER, CancelReason

pytestmark = pytest.mark.unit


class TestStateDef:
    def test_starting(self) -> None:
        assert StateDef.starting('a') == StateDef(id='a', can_start=True)

    def test_non_starting(self) -> None:
        assert StateDef.non_starting('b').can_start is False

    def test_default_is_not_startable(self) -> None:
        assert StateDef('c').can_start is False


class TestChannelAndAttributeDefs:
    def test_signal_channel_wraps_type(self) -> None:
        channel = SignalChannelDef('cancel', CancelReason)
        assert channel.value_type == TypeDescriptor.of(CancelReason)

    def test_descriptor_passed_through(self) -> None:
        d = TypeDescriptor.of(int)
        assert QueryAttributeDef('count', d).value_type is d

    @pytest.mark.parametrize('make', [SignalChannelDef, QueryAttributeDef])
    def test_type_without_schema_rejected(self, make: type) -> None:
        class Handle:
            pass

        with pytest.raises(WorkflowDefinitionError) as exc_info:
            make('handle', Handle)
        assert exc_info.value.code == ErrorCode.WORKFLOW_UNSUPPORTED_VALUE_TYPE
        assert "'handle'" in exc_info.value.message

    def test_defs_are_frozen(self) -> None:
        channel = SignalChannelDef('cancel', CancelReason)
        with pytest.raises(AttributeError):
            channel.name = 'other'  # type: ignore[misc]


class TestWorkflowTypeModel:
    def test_sequences_stored_as_tuples(self) -> None:
        assert isinstance(ORDER.states, tuple)
        assert isinstance(ORDER.signal_channels, tuple)
        assert isinstance(ORDER.query_attributes, tuple)

    def test_starting_state_ids(self) -> None:
        assert ORDER.starting_state_ids == ['validate']

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(WorkflowDefinitionError) as exc_info:
            WorkflowTypeModel(name='  ')
        assert exc_info.value.code == ErrorCode.WORKFLOW_NO_NAME

    def test_duplicate_signal_channel_rejected(self) -> None:
        with pytest.raises(WorkflowDefinitionError) as exc_info:
            WorkflowTypeModel(
                name='Dup',
                signal_channels=[
                    SignalChannelDef('go', str),
                    SignalChannelDef('go', int),
                ],
            )
        assert exc_info.value.code == ErrorCode.WORKFLOW_DUPLICATE_SIGNAL_CHANNEL
        assert "duplicate signal channel 'go'" in str(exc_info.value)

    def test_duplicate_query_attribute_rejected(self) -> None:
        with pytest.raises(WorkflowDefinitionError) as exc_info:
            WorkflowTypeModel(
                name='Dup',
                query_attributes=[QueryAttributeDef('k', str), QueryAttributeDef('k', str)],
            )
        assert exc_info.value.code == ErrorCode.WORKFLOW_DUPLICATE_QUERY_ATTRIBUTE

    def test_all_problems_reported_together(self) -> None:
        with pytest.raises(MultipleValidationErrors) as exc_info:
            WorkflowTypeModel(
                name='Dup',
                states=[StateDef.starting('s'), StateDef.non_starting('s')],
                signal_channels=[SignalChannelDef('c', str), SignalChannelDef('c', str)],
            )
        codes = {e.code for e in exc_info.value.report.errors}
        assert codes == {
            ErrorCode.WORKFLOW_DUPLICATE_STATE_ID,
            ErrorCode.WORKFLOW_DUPLICATE_SIGNAL_CHANNEL,
        }

    def test_no_start_state_allowed_at_declaration(self) -> None:
        """Startability is only checked when a run is started."""
        model = WorkflowTypeModel(name='Passive', states=[StateDef.non_starting('x')])
        assert model.starting_state_ids == []
