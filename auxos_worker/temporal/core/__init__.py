from .workflow_registry import WorkflowRegistry, WorkflowType
from .constants import *

__all__ = [
    "WorkflowRegistry",
    "WorkflowType",
    "constants",
]
