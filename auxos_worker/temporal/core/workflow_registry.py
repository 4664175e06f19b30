"""Registry the worker reads to decide which workflow classes to poll for."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Type

from .constants import DEFAULT_TASK_QUEUE


class WorkflowType(str, Enum):
    """Workflow categories."""
    EXTRACTION = "extraction"  # one document
    COMPOSITE = "composite"  # fans out to child workflows


@dataclass
class WorkflowMetadata:
    workflow_class: Type
    name: str
    category: WorkflowType
    task_queue: str
    dependencies: List[str] = field(default_factory=list)  # child workflow class names


class WorkflowRegistry:
    """Central registry for all workflows."""

    _workflows: Dict[str, WorkflowMetadata] = {}

    @classmethod
    def register(
        cls,
        category: WorkflowType,
        task_queue: str = DEFAULT_TASK_QUEUE,
        dependencies: Optional[List[str]] = None,
    ):
        """Class decorator recording a workflow and the children it starts.

        Raises:
            ValueError: If a different class is already registered under the same name
        """
        def decorator(workflow_class: Type) -> Type:
            name = workflow_class.__name__
            existing = cls._workflows.get(name)
            if existing is not None and existing.workflow_class is not workflow_class:
                raise ValueError(f"Workflow {name} is already registered")
            cls._workflows[name] = WorkflowMetadata(
                workflow_class=workflow_class,
                name=name,
                category=category,
                task_queue=task_queue,
                dependencies=list(dependencies or []),
            )
            return workflow_class
        return decorator

    @classmethod
    def get_all_workflows(cls) -> Dict[str, WorkflowMetadata]:
        return dict(cls._workflows)

    @classmethod
    def get_by_category(cls, category: WorkflowType) -> List[WorkflowMetadata]:
        return [w for w in cls._workflows.values() if w.category == category]

    @classmethod
    def workflows_for_queues(cls, task_queues: List[str]) -> List[Type]:
        """Workflow classes to register on a worker polling ``task_queues``.

        Children run on the parent's task queue, so every dependency of a
        selected workflow is included as well.

        Raises:
            ValueError: If a selected workflow depends on an unregistered workflow
        """
        selected: List[str] = []
        pending = [name for name, w in cls._workflows.items() if w.task_queue in task_queues]
        while pending:
            name = pending.pop(0)
            if name in selected:
                continue
            metadata = cls._workflows.get(name)
            if metadata is None:
                raise ValueError(f"Workflow dependency {name} is not registered")
            selected.append(name)
            pending.extend(metadata.dependencies)
        return [cls._workflows[name].workflow_class for name in selected]
