"""statewire - typed, validating client for a remote workflow orchestration service"""

# Install Rust-style error handler on import
from .core.errors import install_error_handler as _install_error_handler

_install_error_handler()

from .core.client import Client, ResultMode
from .core.registry.workflows import Registry
from .core.codec.serde import PayloadCodec, TypeDescriptor
from .core.models.workflow import (
    StateDef,
    SignalChannelDef,
    QueryAttributeDef,
    WorkflowTypeModel,
)
from .core.models.options import ClientOptions, WorkflowStartOptions
from .core.models.api import (
    ResetType,
    ResetSpec,
    HistoryEventIdReset,
    BadBinaryReset,
    DecisionCompletedTimeReset,
    LastDecisionCompletedReset,
    StateCompletionOutput,
    KeyValue,
    WorkflowStatus,
)
from .core.transport import WorkflowServiceStub, HttpWorkflowService
from .core.errors import (
    ErrorCode,
    StatewireError,
    ValidationReport,
    MultipleValidationErrors,
    WorkflowDefinitionError,
    ConfigurationError,
    RegistryError,
    ClientValidationError,
    ResponseShapeError,
    CodecError,
    DuplicateWorkflowTypeError,
    WorkflowTypeNotRegisteredError,
    InvalidStartStateError,
    SignalChannelNotRegisteredError,
    SignalTypeMismatchError,
    UnknownQueryAttributesError,
    MultipleCompletionStatesError,
    MissingOutputError,
    MalformedServerResponseError,
    DecodeError,
    EncodeError,
)

__all__ = [
    # Core
    'Client',
    'ResultMode',
    'Registry',
    'PayloadCodec',
    'TypeDescriptor',
    # Workflow models
    'StateDef',
    'SignalChannelDef',
    'QueryAttributeDef',
    'WorkflowTypeModel',
    # Options
    'ClientOptions',
    'WorkflowStartOptions',
    # Wire models
    'ResetType',
    'ResetSpec',
    'HistoryEventIdReset',
    'BadBinaryReset',
    'DecisionCompletedTimeReset',
    'LastDecisionCompletedReset',
    'StateCompletionOutput',
    'KeyValue',
    'WorkflowStatus',
    # Transport
    'WorkflowServiceStub',
    'HttpWorkflowService',
    # Errors
    'ErrorCode',
    'StatewireError',
    'ValidationReport',
    'MultipleValidationErrors',
    'WorkflowDefinitionError',
    'ConfigurationError',
    'RegistryError',
    'ClientValidationError',
    'ResponseShapeError',
    'CodecError',
    'DuplicateWorkflowTypeError',
    'WorkflowTypeNotRegisteredError',
    'InvalidStartStateError',
    'SignalChannelNotRegisteredError',
    'SignalTypeMismatchError',
    'UnknownQueryAttributesError',
    'MultipleCompletionStatesError',
    'MissingOutputError',
    'MalformedServerResponseError',
    'DecodeError',
    'EncodeError',
]
