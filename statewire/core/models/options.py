# statewire/core/models/options.py
from typing import Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from statewire.core.errors import (
    ConfigurationError,
    ErrorCode,
    ValidationReport,
    raise_collected,
)
import logging
import os

DEFAULT_SERVER_URL = 'http://localhost:8801'
DEFAULT_WORKER_URL = 'http://localhost:8802'


def _url_error(field_name: str, value: str) -> Optional[ConfigurationError]:
    if value.startswith(('http://', 'https://')):
        return None
    return ConfigurationError(
        message=f'invalid {field_name}',
        code=ErrorCode.CONFIG_INVALID_URL,
        notes=[f'got {field_name}={value!r}'],
        help_text="use an absolute URL such as 'http://localhost:8801'",
    )


class ClientOptions(BaseModel):
    """Connection settings shared by every call a Client makes."""

    model_config = ConfigDict(frozen=True)

    server_url: str = Field(
        default=DEFAULT_SERVER_URL,
        description='Base URL of the orchestration service',
    )
    worker_url: str = Field(
        default=DEFAULT_WORKER_URL,
        description='URL the service calls back to execute workflow states',
    )
    # 0 lets the service apply its own default
    default_workflow_timeout_seconds: int = 0
    # None = no client-side timeout; get-with-wait blocks until the server returns
    request_timeout_seconds: Optional[float] = None

    @model_validator(mode='after')
    def validate_options(self):
        """Collect all independent errors and raise them together."""
        report = ValidationReport('config')

        for field_name in ('server_url', 'worker_url'):
            err = _url_error(field_name, getattr(self, field_name))
            if err is not None:
                report.add(err)

        if self.default_workflow_timeout_seconds < 0:
            report.add(
                ConfigurationError(
                    message='default_workflow_timeout_seconds must be non-negative',
                    code=ErrorCode.CONFIG_INVALID_TIMEOUT,
                    notes=[
                        f'got default_workflow_timeout_seconds={self.default_workflow_timeout_seconds}'
                    ],
                    help_text='use 0 to let the service pick its default timeout',
                )
            )

        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0:
            report.add(
                ConfigurationError(
                    message='request_timeout_seconds must be positive',
                    code=ErrorCode.CONFIG_INVALID_TIMEOUT,
                    notes=[f'got request_timeout_seconds={self.request_timeout_seconds}'],
                    help_text='use None to wait without a client-side timeout',
                )
            )

        raise_collected(report)
        return self

    @classmethod
    def from_env(
        cls,
        prefix: str = 'STATEWIRE_',
        environ: Optional[Mapping[str, str]] = None,
    ) -> 'ClientOptions':
        """
        Build options from environment variables.

        Reads ``<prefix>SERVER_URL``, ``<prefix>WORKER_URL``,
        ``<prefix>DEFAULT_WORKFLOW_TIMEOUT_SECONDS`` and
        ``<prefix>REQUEST_TIMEOUT_SECONDS``; unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field_name in (
            'server_url',
            'worker_url',
            'default_workflow_timeout_seconds',
            'request_timeout_seconds',
        ):
            raw = env.get(f'{prefix}{field_name.upper()}')
            if raw:
                values[field_name] = raw
        return cls.model_validate(values)

    def log_config(self, logger: Optional[logging.Logger] = None) -> None:
        """Log the effective options in a human-readable format."""
        if logger is None:
            from statewire.core.logging import get_logger

            logger = get_logger('config')

        timeout = (
            'server default'
            if self.default_workflow_timeout_seconds == 0
            else f'{self.default_workflow_timeout_seconds}s'
        )
        request_timeout = (
            'none'
            if self.request_timeout_seconds is None
            else f'{self.request_timeout_seconds}s'
        )
        logger.info('statewire client configuration:')
        logger.info(f'  server_url: {self.server_url}')
        logger.info(f'  worker_url: {self.worker_url}')
        logger.info(f'  workflow timeout: {timeout}')
        logger.info(f'  request timeout: {request_timeout}')


class WorkflowStartOptions(BaseModel):
    """Per-start settings."""

    model_config = ConfigDict(frozen=True)

    workflow_timeout_seconds: int = 0

    @model_validator(mode='after')
    def validate_timeout(self):
        if self.workflow_timeout_seconds < 0:
            raise ConfigurationError(
                message='workflow_timeout_seconds must be non-negative',
                code=ErrorCode.CONFIG_INVALID_TIMEOUT,
                notes=[f'got workflow_timeout_seconds={self.workflow_timeout_seconds}'],
            )
        return self
