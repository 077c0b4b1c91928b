"""Registry of workflow classes, grouped by category and task queue."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from curation.temporal.core.constants import DEFAULT_TASK_QUEUE


class WorkflowType(str, Enum):
    QUEUE = "queue"
    REVIEW = "review"
    OUTBOX = "outbox"


@dataclass(frozen=True)
class WorkflowMetadata:
    workflow_class: type
    category: WorkflowType
    task_queue: str

    @property
    def name(self) -> str:
        return self.workflow_class.__name__


class WorkflowRegistry:
    """Workflow classes by name; the worker starts one poller per task queue."""

    _workflows: Dict[str, WorkflowMetadata] = {}

    @classmethod
    def register(cls, category: WorkflowType, task_queue: Optional[str] = None):
        def decorator(workflow_class: type) -> type:
            metadata = WorkflowMetadata(
                workflow_class=workflow_class,
                category=category,
                task_queue=task_queue or DEFAULT_TASK_QUEUE,
            )
            cls._workflows[metadata.name] = metadata
            return workflow_class
        return decorator

    @classmethod
    def get_all_workflows(cls) -> Dict[str, WorkflowMetadata]:
        return dict(cls._workflows)

    @classmethod
    def get_by_category(cls, category: WorkflowType) -> List[WorkflowMetadata]:
        return [w for w in cls._workflows.values() if w.category is category]

    @classmethod
    def by_task_queue(cls) -> Dict[str, List[type]]:
        queues: Dict[str, List[type]] = {}
        for metadata in cls._workflows.values():
            queues.setdefault(metadata.task_queue, []).append(metadata.workflow_class)
        return queues
