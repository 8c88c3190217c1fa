"""
Network Task - 任务调度模块

负责在后台执行请求，并把结果恰好一次地交给回调。
"""

from .task_dispatcher import TaskDispatcher, ResultHandler

__all__ = ["TaskDispatcher", "ResultHandler"]
