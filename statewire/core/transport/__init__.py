from .base import WorkflowServiceStub
from .http import HttpWorkflowService

__all__ = [
    'WorkflowServiceStub',
    'HttpWorkflowService',
]
