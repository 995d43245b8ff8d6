"""Local declarations of remote workflow types.

A ``WorkflowTypeModel`` describes what the client may do with a workflow
type: which states can start it, which signal channels it accepts and
which query attributes it exposes. Models are immutable once built.

Example::

    order = WorkflowTypeModel(
        name='Order',
        states=[StateDef.starting('validate'), StateDef.non_starting('ship')],
        signal_channels=[SignalChannelDef('cancel', CancelReason)],
        query_attributes=[QueryAttributeDef('status', str)],
    )
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from pydantic import PydanticSchemaGenerationError

from statewire.core.codec.serde import TypeDescriptor
from statewire.core.errors import (
    ErrorCode,
    ValidationReport,
    WorkflowDefinitionError,
    raise_collected,
)


@dataclass(frozen=True, slots=True)
class StateDef:
    """A declared workflow state and whether it is a valid entry point."""

    id: str
    can_start: bool = False

    @classmethod
    def starting(cls, state_id: str) -> StateDef:
        return cls(id=state_id, can_start=True)

    @classmethod
    def non_starting(cls, state_id: str) -> StateDef:
        return cls(id=state_id, can_start=False)


def _value_type(kind: str, name: str, value_type: Any) -> TypeDescriptor:
    try:
        return TypeDescriptor.of(value_type)
    except PydanticSchemaGenerationError:
        type_name = getattr(value_type, '__qualname__', repr(value_type))
        raise WorkflowDefinitionError(
            message=f"unsupported value type {type_name} for {kind} '{name}'",
            code=ErrorCode.WORKFLOW_UNSUPPORTED_VALUE_TYPE,
            notes=[f'{type_name} has no pydantic schema, so its values cannot be encoded'],
            help_text=(
                'use a pydantic model, a dataclass, an enum, a JSON primitive '
                'or a container of those'
            ),
        ) from None


@dataclass(frozen=True, slots=True, init=False)
class SignalChannelDef:
    """A named signal channel and the type its values must have.

    Raises:
        WorkflowDefinitionError: `value_type` cannot be validated by pydantic.
    """

    name: str
    value_type: TypeDescriptor

    def __init__(self, name: str, value_type: Any) -> None:
        object.__setattr__(self, 'name', name)
        object.__setattr__(
            self, 'value_type', _value_type('signal channel', name, value_type)
        )


@dataclass(frozen=True, slots=True, init=False)
class QueryAttributeDef:
    """A named query attribute and the type of its value."""

    key: str
    value_type: TypeDescriptor

    def __init__(self, key: str, value_type: Any) -> None:
        object.__setattr__(self, 'key', key)
        object.__setattr__(
            self, 'value_type', _value_type('query attribute', key, value_type)
        )


def _duplicates(names: Iterable[str]) -> list[str]:
    return [name for name, count in Counter(names).items() if count > 1]


@dataclass(frozen=True)
class WorkflowTypeModel:
    """
    Declared model of one workflow type, identified by `name`.

    Construction validates the declaration and raises every problem
    found at once (`WorkflowDefinitionError`, or `MultipleValidationErrors`
    when there is more than one).
    """

    name: str
    states: tuple[StateDef, ...] = ()
    signal_channels: tuple[SignalChannelDef, ...] = ()
    query_attributes: tuple[QueryAttributeDef, ...] = ()
    description: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        # Accept any iterable, store tuples
        object.__setattr__(self, 'states', tuple(self.states))
        object.__setattr__(self, 'signal_channels', tuple(self.signal_channels))
        object.__setattr__(self, 'query_attributes', tuple(self.query_attributes))

        report = ValidationReport('workflow definition')

        if not self.name or not self.name.strip():
            report.add(
                WorkflowDefinitionError(
                    message='workflow type name must be non-empty',
                    code=ErrorCode.WORKFLOW_NO_NAME,
                    help_text="pass name='<WorkflowType>' to WorkflowTypeModel",
                )
            )

        checks = (
            (
                [s.id for s in self.states],
                'state id',
                ErrorCode.WORKFLOW_DUPLICATE_STATE_ID,
            ),
            (
                [c.name for c in self.signal_channels],
                'signal channel',
                ErrorCode.WORKFLOW_DUPLICATE_SIGNAL_CHANNEL,
            ),
            (
                [q.key for q in self.query_attributes],
                'query attribute',
                ErrorCode.WORKFLOW_DUPLICATE_QUERY_ATTRIBUTE,
            ),
        )
        for names, kind, code in checks:
            for dup in _duplicates(names):
                report.add(
                    WorkflowDefinitionError(
                        message=f"duplicate {kind} '{dup}'",
                        code=code,
                        notes=[f"workflow type: '{self.name}'"],
                        help_text=f'each {kind} must be unique within a workflow type',
                    )
                )

        raise_collected(report)

    @property
    def starting_state_ids(self) -> list[str]:
        return [s.id for s in self.states if s.can_start]
