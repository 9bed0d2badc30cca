from .base_task import BaseTask
from .dispatcher import CANCEL_EXPIRED_TASK, SEND_PUSH_TASK, TaskDispatcher

__all__ = ["BaseTask", "TaskDispatcher", "SEND_PUSH_TASK", "CANCEL_EXPIRED_TASK"]
