"""Rust-style error display for statewire validation and response errors."""

from __future__ import annotations

import inspect
import linecache
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

# Absolute path to the statewire package directory.
# Frames under this directory are library frames, everything else is user code.
_STATEWIRE_PKG_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class ErrorCode(str, Enum):
    """Error codes for statewire errors.

    Organized by category:
    - E001-E099: Workflow definition errors
    - E100-E199: Client-side call validation errors
    - E200-E299: Configuration errors
    - E300-E399: Registry errors
    - E400-E499: Server response shape errors
    - E500-E599: Payload codec errors
    """

    # Workflow definition (E001-E099)
    WORKFLOW_NO_NAME = 'E001'
    WORKFLOW_DUPLICATE_STATE_ID = 'E002'
    WORKFLOW_DUPLICATE_SIGNAL_CHANNEL = 'E003'
    WORKFLOW_DUPLICATE_QUERY_ATTRIBUTE = 'E004'
    WORKFLOW_UNSUPPORTED_VALUE_TYPE = 'E005'

    # Call validation (E100-E199)
    WORKFLOW_TYPE_NOT_REGISTERED = 'E100'
    INVALID_START_STATE = 'E101'
    SIGNAL_CHANNEL_NOT_REGISTERED = 'E102'
    SIGNAL_TYPE_MISMATCH = 'E103'
    UNKNOWN_QUERY_ATTRIBUTES = 'E104'

    # Config (E200-E299)
    CONFIG_INVALID_URL = 'E200'
    CONFIG_INVALID_TIMEOUT = 'E201'

    # Registry (E300-E399)
    WORKFLOW_DUPLICATE_TYPE = 'E300'

    # Response shape (E400-E499)
    MULTIPLE_COMPLETION_STATES = 'E400'
    MISSING_OUTPUT = 'E401'
    MALFORMED_RESPONSE = 'E402'

    # Codec (E500-E599)
    DECODE_FAILED = 'E500'
    ENCODE_FAILED = 'E501'


class _Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'


class _NoColors:
    RESET = ''
    BOLD = ''
    RED = ''
    BLUE = ''
    CYAN = ''
    GREEN = ''


def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').lower() in ('1', 'true', 'yes')


def _should_use_colors() -> bool:
    """Determine if colors should be used in output."""
    if _env_flag('STATEWIRE_FORCE_COLOR'):
        return True

    # https://no-color.org/
    if os.environ.get('NO_COLOR') is not None:
        return False

    return hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()


def _should_use_plain_errors() -> bool:
    """Determine if plain Python tracebacks should be used instead of Rust-style."""
    return _env_flag('STATEWIRE_PLAIN_ERRORS')


@dataclass
class SourceLocation:
    """Source code location information."""

    file: str
    line: int

    @classmethod
    def from_frame(cls, frame: Any) -> SourceLocation:
        return cls(file=frame.f_code.co_filename, line=frame.f_lineno)

    def get_source_line(self) -> str | None:
        """Read the source line from the file, or None if unavailable."""
        line = linecache.getline(self.file, self.line)
        return line.rstrip('\n') if line else None

    def format_short(self) -> str:
        return f'{self.file}:{self.line}'


@dataclass
class StatewireError(Exception):
    """Base exception for statewire errors.

    Carries an error code, the user-code location that triggered it,
    and optional notes and help text for Rust-style display.
    """

    message: str
    code: ErrorCode | None = None
    location: SourceLocation | None = None
    notes: list[str] = field(default_factory=lambda: [])
    help_text: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

        if self.location is None:
            user_frame = _find_user_frame()
            if user_frame is not None:
                self.location = SourceLocation.from_frame(user_frame)

    def with_note(self, note: str) -> StatewireError:
        """Add a note to the error (fluent API)."""
        self.notes.append(note)
        return self

    def with_help(self, help_text: str) -> StatewireError:
        """Set help text (fluent API)."""
        self.help_text = help_text
        return self

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        if use_colors is None:
            use_colors = _should_use_colors()

        c = _Colors if use_colors else _NoColors
        lines: list[str] = ['']

        code_part = f'[{self.code.value}]' if self.code else ''
        lines.append(f'{c.BOLD}{c.RED}error{code_part}:{c.RESET} {self.message}')

        if self.location:
            lines.append(
                f'  {c.BLUE}-->{c.RESET} {c.CYAN}{self.location.format_short()}{c.RESET}'
            )
            source_line = self.location.get_source_line()
            if source_line:
                line_num = str(self.location.line)
                padding = ' ' * len(line_num)
                stripped = source_line.lstrip()
                indent = len(source_line) - len(stripped)
                underline = ' ' * indent + '^' * len(stripped)
                lines.append(f'   {c.BLUE}{padding}|{c.RESET}')
                lines.append(f'   {c.BLUE}{line_num}|{c.RESET} {source_line}')
                lines.append(
                    f'   {c.BLUE}{padding}|{c.RESET} {c.RED}{underline}{c.RESET}'
                )

        for note in self.notes:
            first, *rest = note.split('\n')
            lines.append(f'   {c.BLUE}={c.RESET} {c.BOLD}{c.BLUE}note{c.RESET}: {first}')
            lines.extend(f'          {extra}' for extra in rest)

        if self.help_text:
            lines.append('')
            lines.append(f'   {c.BLUE}={c.RESET} {c.BOLD}{c.GREEN}help{c.RESET}:')
            lines.extend(f'        {h}' for h in self.help_text.split('\n'))

        return '\n'.join(lines)

    def __str__(self) -> str:
        """Plain-text rendering, safe for log records and serialization."""
        return self.format_rust_style(use_colors=False)


_original_excepthook = sys.excepthook


def _statewire_excepthook(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: Any,
) -> None:
    """Print StatewireError (and ValidationReport wrappers) Rust-style."""
    if _should_use_plain_errors() or not isinstance(exc_value, StatewireError):
        _original_excepthook(exc_type, exc_value, exc_tb)
        return
    print(exc_value.format_rust_style(), file=sys.stderr)


def install_error_handler() -> None:
    """Install the custom exception hook for Rust-style error display."""
    sys.excepthook = _statewire_excepthook


def uninstall_error_handler() -> None:
    """Restore the original exception hook."""
    sys.excepthook = _original_excepthook


# =============================================================================
# Error categories
# =============================================================================


@dataclass
class WorkflowDefinitionError(StatewireError):
    """Raised when a workflow type model is malformed."""

    pass


@dataclass
class ConfigurationError(StatewireError):
    """Raised when client options are invalid."""

    pass


@dataclass
class RegistryError(StatewireError):
    """Raised when the workflow registry cannot be built."""

    pass


@dataclass
class ClientValidationError(StatewireError, ValueError):
    """Raised before any RPC when a call does not match the registered model."""

    pass


@dataclass
class ResponseShapeError(StatewireError):
    """Raised when the server response does not have the shape a call requires."""

    pass


@dataclass
class CodecError(StatewireError):
    """Raised when a payload cannot be encoded or decoded."""

    pass


# =============================================================================
# Phase-gated error collection
# =============================================================================


class ValidationReport:
    """Collects multiple StatewireError instances within a validation phase."""

    def __init__(self, phase_name: str) -> None:
        self.phase_name: str = phase_name
        self.errors: list[StatewireError] = []

    def add(self, error: StatewireError) -> None:
        self.errors.append(error)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        if use_colors is None:
            use_colors = _should_use_colors()

        c = _Colors if use_colors else _NoColors
        parts = [error.format_rust_style(use_colors=use_colors) for error in self.errors]
        parts.append(
            f'\n{c.BOLD}{c.RED}error{c.RESET}: aborting {self.phase_name} '
            f'due to {len(self.errors)} previous errors'
        )
        return '\n'.join(parts)

    def __str__(self) -> str:
        return self.format_rust_style(use_colors=False)


@dataclass
class MultipleValidationErrors(StatewireError):
    """Wraps a ValidationReport containing 2+ errors.

    Single errors are raised as their original type so existing
    except clauses keep working.
    """

    report: ValidationReport = field(default_factory=lambda: ValidationReport(''))

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f'aborting due to {len(self.report.errors)} previous errors'
        # Location is per-error in the report
        super(StatewireError, self).__init__(self.message)

    def format_rust_style(self, use_colors: bool | None = None) -> str:
        return self.report.format_rust_style(use_colors=use_colors)

    def __str__(self) -> str:
        return self.format_rust_style(use_colors=False)


def raise_collected(report: ValidationReport) -> None:
    """Raise collected errors.

    - 0 errors: no-op
    - 1 error: raises the original error
    - 2+ errors: raises MultipleValidationErrors wrapping the report
    """
    count = len(report.errors)
    if count == 0:
        return
    if count == 1:
        raise report.errors[0]
    raise MultipleValidationErrors(
        message=f'aborting due to {count} previous errors',
        report=report,
    )


def _find_user_frame() -> Any | None:
    """Find the first frame outside of statewire internals."""
    frame = inspect.currentframe()
    while frame is not None:
        filename = frame.f_code.co_filename
        if (
            not filename.startswith('<')
            and not filename.startswith(_STATEWIRE_PKG_DIR)
            and '/site-packages/' not in filename
        ):
            return frame
        frame = frame.f_back
    return None


# =============================================================================
# Concrete errors
# =============================================================================


class DuplicateWorkflowTypeError(RegistryError):
    """Raised when two workflow type models share a name."""

    def __init__(self, workflow_types: Sequence[str]) -> None:
        names = ', '.join(f"'{t}'" for t in workflow_types)
        super().__init__(
            message=f'duplicate workflow type {names}',
            code=ErrorCode.WORKFLOW_DUPLICATE_TYPE,
            notes=[f'workflow type registered more than once: {names}'],
            help_text='each workflow type name must be unique within a registry',
        )
        self.workflow_types = list(workflow_types)


class WorkflowTypeNotRegisteredError(ClientValidationError):
    def __init__(self, workflow_type: str) -> None:
        super().__init__(
            message=f"workflow type '{workflow_type}' is not registered",
            code=ErrorCode.WORKFLOW_TYPE_NOT_REGISTERED,
            notes=[f"requested workflow type: '{workflow_type}'"],
            help_text='add the WorkflowTypeModel to the list passed to Registry.build()',
        )
        self.workflow_type = workflow_type


class InvalidStartStateError(ClientValidationError):
    """Raised when the start state is unknown or not marked as a starting state."""

    def __init__(self, workflow_type: str, state_id: str, *, declared: bool) -> None:
        reason = (
            'is not a starting state' if declared else 'is not declared for this workflow'
        )
        super().__init__(
            message=f"invalid start state '{state_id}'",
            code=ErrorCode.INVALID_START_STATE,
            notes=[f"state '{state_id}' of workflow type '{workflow_type}' {reason}"],
            help_text="declare the state with StateDef.starting('<id>') to start from it",
        )
        self.workflow_type = workflow_type
        self.state_id = state_id


class SignalChannelNotRegisteredError(ClientValidationError):
    def __init__(self, workflow_type: str, channel_name: str) -> None:
        super().__init__(
            message=f"workflow type '{workflow_type}' has no signal channel '{channel_name}'",
            code=ErrorCode.SIGNAL_CHANNEL_NOT_REGISTERED,
            help_text='declare the channel with SignalChannelDef on the workflow type model',
        )
        self.workflow_type = workflow_type
        self.channel_name = channel_name


class SignalTypeMismatchError(ClientValidationError):
    def __init__(self, channel_name: str, expected: str, actual: str) -> None:
        super().__init__(
            message=f"signal value for channel '{channel_name}' is not of type {expected}",
            code=ErrorCode.SIGNAL_TYPE_MISMATCH,
            notes=[f'expected: {expected}', f'got: {actual}'],
        )
        self.channel_name = channel_name
        self.expected = expected
        self.actual = actual


class UnknownQueryAttributesError(ClientValidationError):
    """Raised with every unregistered key of a query attribute request."""

    def __init__(self, workflow_type: str, missing_keys: Sequence[str]) -> None:
        super().__init__(
            message=f"query attributes not registered: {', '.join(missing_keys)}",
            code=ErrorCode.UNKNOWN_QUERY_ATTRIBUTES,
            notes=[f"workflow type: '{workflow_type}'"],
            help_text='declare the keys with QueryAttributeDef, or request all attributes',
        )
        self.workflow_type = workflow_type
        self.missing_keys = list(missing_keys)


class MultipleCompletionStatesError(ResponseShapeError):
    def __init__(self, workflow_id: str, count: int) -> None:
        super().__init__(
            message=f"workflow '{workflow_id}' completed with {count} state outputs",
            code=ErrorCode.MULTIPLE_COMPLETION_STATES,
            notes=['the simple result API requires one or zero completion states'],
            help_text='use get_complex_workflow_result_with_wait() for this workflow',
        )
        self.workflow_id = workflow_id
        self.count = count


class MissingOutputError(ResponseShapeError):
    def __init__(self, workflow_id: str, state_id: str) -> None:
        super().__init__(
            message=f"completion state '{state_id}' of workflow '{workflow_id}' has no output",
            code=ErrorCode.MISSING_OUTPUT,
            help_text='use get_complex_workflow_result_with_wait() to inspect raw completions',
        )
        self.workflow_id = workflow_id
        self.state_id = state_id


class MalformedServerResponseError(ResponseShapeError):
    def __init__(self, operation: str, missing_field: str) -> None:
        super().__init__(
            message=f"{operation} response is missing '{missing_field}'",
            code=ErrorCode.MALFORMED_RESPONSE,
        )
        self.operation = operation
        self.missing_field = missing_field


class DecodeError(CodecError):
    def __init__(self, target: str, detail: str) -> None:
        super().__init__(
            message=f'cannot decode payload into {target}',
            code=ErrorCode.DECODE_FAILED,
            notes=[detail],
        )
        self.target = target


class EncodeError(CodecError):
    def __init__(self, type_name: str) -> None:
        super().__init__(
            message=f'cannot encode value of type {type_name}',
            code=ErrorCode.ENCODE_FAILED,
            help_text='use JSON primitives, pydantic models, dataclasses, enums or datetimes',
        )
        self.type_name = type_name
