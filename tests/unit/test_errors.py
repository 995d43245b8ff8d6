"""Unit tests for error types and Rust-style error formatting."""

from __future__ import annotations

import inspect
import os
import sys
import tempfile
from io import StringIO
from unittest import mock

import pytest

from statewire.core.errors import (
    ClientValidationError,
    ConfigurationError,
    DuplicateWorkflowTypeError,
    ErrorCode,
    InvalidStartStateError,
    MalformedServerResponseError,
    MissingOutputError,
    MultipleCompletionStatesError,
    MultipleValidationErrors,
    RegistryError,
    ResponseShapeError,
    SignalChannelNotRegisteredError,
    SignalTypeMismatchError,
    SourceLocation,
    StatewireError,
    UnknownQueryAttributesError,
    ValidationReport,
    WorkflowTypeNotRegisteredError,
    _statewire_excepthook,
    _should_use_colors,
    install_error_handler,
    raise_collected,
    uninstall_error_handler,
)

pytestmark = pytest.mark.unit


# =============================================================================
# SourceLocation Tests
# =============================================================================


class TestSourceLocation:
    def test_format_short(self) -> None:
        loc = SourceLocation(file='/path/to/file.py', line=42)
        assert loc.format_short() == '/path/to/file.py:42'

    def test_get_source_line_existing_file(self) -> None:
        with tempfile.NamedTemporaryFile(mode='w', suffix='.py', delete=False) as f:
            f.write('line 1\nline 2\n')
            temp_path = f.name

        try:
            assert SourceLocation(file=temp_path, line=2).get_source_line() == 'line 2'
        finally:
            os.unlink(temp_path)

    def test_get_source_line_nonexistent_file(self) -> None:
        loc = SourceLocation(file='/nonexistent/path.py', line=1)
        assert loc.get_source_line() is None

    def test_from_frame(self) -> None:
        frame = inspect.currentframe()
        assert frame is not None
        loc = SourceLocation.from_frame(frame)
        assert loc.file.endswith('test_errors.py')
        assert loc.line > 0


# =============================================================================
# StatewireError Tests
# =============================================================================


class TestStatewireError:
    """Tests for the StatewireError base class."""

    def test_basic_creation(self) -> None:
        err = StatewireError(message='something went wrong')
        assert err.message == 'something went wrong'
        assert err.code is None
        assert err.notes == []
        assert err.help_text is None

    def test_exception_args_contains_message(self) -> None:
        assert StatewireError(message='msg').args == ('msg',)

    def test_fluent_api(self) -> None:
        err = StatewireError(message='error').with_note('n1').with_note('n2').with_help('h')
        assert err.notes == ['n1', 'n2']
        assert err.help_text == 'h'

    def test_auto_location_points_at_caller(self) -> None:
        """Location is the first frame outside the statewire package."""
        err = StatewireError(message='auto-located')
        assert err.location is not None
        assert err.location.file.endswith('test_errors.py')

    def test_format_with_code(self) -> None:
        err = StatewireError(message='bad start', code=ErrorCode.INVALID_START_STATE)
        assert 'error[E101]: bad start' in err.format_rust_style(use_colors=False)

    def test_format_with_location_snippet(self) -> None:
        with tempfile.NamedTemporaryFile(mode='w', suffix='.py', delete=False) as f:
            f.write('x = 1\n')
            f.write('    client.start_workflow()\n')
            temp_path = f.name

        try:
            err = StatewireError(
                message='error occurred',
                location=SourceLocation(file=temp_path, line=2),
            )
            formatted = err.format_rust_style(use_colors=False)
            assert f'--> {temp_path}:2' in formatted
            assert 'client.start_workflow()' in formatted
            assert '    ' + '^' * len('client.start_workflow()') in formatted
        finally:
            os.unlink(temp_path)

    def test_format_notes_and_help(self) -> None:
        err = StatewireError(
            message='error',
            notes=['first note', 'line a\nline b'],
            help_text='try this',
        )
        formatted = err.format_rust_style(use_colors=False)
        assert '= note: first note' in formatted
        assert '= note: line a' in formatted
        assert 'line b' in formatted
        assert '= help:' in formatted
        assert 'try this' in formatted

    def test_format_with_colors(self) -> None:
        formatted = StatewireError(message='colored').format_rust_style(use_colors=True)
        assert '\033[' in formatted

    def test_default_colors_auto_detects(self) -> None:
        err = StatewireError(message='auto')
        with mock.patch('statewire.core.errors._should_use_colors', return_value=False):
            formatted = err.format_rust_style()
        assert '\033[' not in formatted

    def test_str_is_plain(self) -> None:
        assert '\033[' not in str(StatewireError(message='test'))
        assert 'error: test' in str(StatewireError(message='test'))


class TestShouldUseColors:
    def test_force_color(self) -> None:
        with mock.patch.dict(os.environ, {'STATEWIRE_FORCE_COLOR': '1'}):
            assert _should_use_colors() is True

    def test_no_color(self) -> None:
        env = {k: v for k, v in os.environ.items() if k != 'STATEWIRE_FORCE_COLOR'}
        env['NO_COLOR'] = ''
        with mock.patch.dict(os.environ, env, clear=True):
            assert _should_use_colors() is False


# =============================================================================
# Concrete error classes
# =============================================================================


class TestConcreteErrors:
    """Codes, attributes and category membership of each concrete error."""

    def test_duplicate_workflow_type(self) -> None:
        err = DuplicateWorkflowTypeError(['Order', 'Refund'])
        assert isinstance(err, RegistryError)
        assert err.code == ErrorCode.WORKFLOW_DUPLICATE_TYPE
        assert err.workflow_types == ['Order', 'Refund']
        assert "'Order'" in str(err) and "'Refund'" in str(err)

    def test_validation_errors_are_value_errors(self) -> None:
        err = WorkflowTypeNotRegisteredError('Nope')
        assert isinstance(err, ClientValidationError)
        assert isinstance(err, ValueError)
        assert err.workflow_type == 'Nope'
        assert err.code == ErrorCode.WORKFLOW_TYPE_NOT_REGISTERED

    def test_invalid_start_state_reason(self) -> None:
        declared = InvalidStartStateError('Order', 'ship', declared=True)
        undeclared = InvalidStartStateError('Order', 'nope', declared=False)
        assert 'is not a starting state' in str(declared)
        assert 'is not declared' in str(undeclared)
        assert declared.state_id == 'ship'

    def test_signal_errors(self) -> None:
        missing = SignalChannelNotRegisteredError('Order', 'refund')
        assert missing.channel_name == 'refund'
        assert missing.code == ErrorCode.SIGNAL_CHANNEL_NOT_REGISTERED

        mismatch = SignalTypeMismatchError('cancel', 'CancelReason', 'str')
        assert mismatch.code == ErrorCode.SIGNAL_TYPE_MISMATCH
        assert '= note: expected: CancelReason' in str(mismatch)
        assert '= note: got: str' in str(mismatch)

    def test_unknown_query_attributes_lists_keys(self) -> None:
        err = UnknownQueryAttributesError('Order', ['x', 'y'])
        assert err.missing_keys == ['x', 'y']
        assert 'query attributes not registered: x, y' in str(err)

    def test_response_shape_errors(self) -> None:
        for err in (
            MultipleCompletionStatesError('wf', 2),
            MissingOutputError('wf', 'done'),
            MalformedServerResponseError('query attributes', 'queryAttributes'),
        ):
            assert isinstance(err, ResponseShapeError)
            assert not isinstance(err, ValueError)

    def test_multiple_completion_help(self) -> None:
        err = MultipleCompletionStatesError('wf-1', 3)
        assert err.count == 3
        assert 'get_complex_workflow_result_with_wait' in str(err)


# =============================================================================
# ValidationReport / raise_collected
# =============================================================================


class TestRaiseCollected:
    def test_no_errors_is_noop(self) -> None:
        raise_collected(ValidationReport('config'))

    def test_single_error_raised_as_is(self) -> None:
        report = ValidationReport('config')
        report.add(ConfigurationError(message='bad url', code=ErrorCode.CONFIG_INVALID_URL))
        with pytest.raises(ConfigurationError):
            raise_collected(report)

    def test_multiple_errors_wrapped(self) -> None:
        report = ValidationReport('config')
        report.add(ConfigurationError(message='first'))
        report.add(ConfigurationError(message='second'))
        with pytest.raises(MultipleValidationErrors) as exc_info:
            raise_collected(report)

        text = str(exc_info.value)
        assert 'first' in text
        assert 'second' in text
        assert 'aborting config due to 2 previous errors' in text
        assert exc_info.value.report is report


# =============================================================================
# Exception hook
# =============================================================================


class TestExcepthook:
    def test_install_and_uninstall(self) -> None:
        original = sys.excepthook
        try:
            install_error_handler()
            assert sys.excepthook is _statewire_excepthook
            uninstall_error_handler()
            assert sys.excepthook is not _statewire_excepthook
        finally:
            sys.excepthook = original

    def test_prints_statewire_error_rust_style(self) -> None:
        err = StatewireError(message='hooked', code=ErrorCode.MISSING_OUTPUT)
        stderr = StringIO()
        env = {
            k: v
            for k, v in os.environ.items()
            if k not in ('STATEWIRE_PLAIN_ERRORS', 'STATEWIRE_FORCE_COLOR')
        }
        with mock.patch.dict(os.environ, env, clear=True), mock.patch.object(
            sys, 'stderr', stderr
        ):
            _statewire_excepthook(StatewireError, err, None)
        assert 'error[E401]: hooked' in stderr.getvalue()

    def test_delegates_other_exceptions(self) -> None:
        with mock.patch('statewire.core.errors._original_excepthook') as original:
            exc = RuntimeError('plain')
            _statewire_excepthook(RuntimeError, exc, None)
        original.assert_called_once_with(RuntimeError, exc, None)

    def test_plain_errors_env_bypasses_formatting(self) -> None:
        err = StatewireError(message='plain please')
        with mock.patch.dict(os.environ, {'STATEWIRE_PLAIN_ERRORS': '1'}), mock.patch(
            'statewire.core.errors._original_excepthook'
        ) as original:
            _statewire_excepthook(StatewireError, err, None)
        original.assert_called_once()
