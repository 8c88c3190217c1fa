"""
Network Task - 任务调度器
"""

import asyncio
import concurrent.futures
import inspect
import logging
import threading
from typing import Awaitable, Callable, Dict, Optional, Union

from ..models import NetworkResult

logger = logging.getLogger(__name__)

# 回调可以是普通函数，也可以是协程函数
ResultHandler = Callable[[NetworkResult], Optional[Awaitable[None]]]
Pipeline = Callable[[], Awaitable[NetworkResult]]


class _Delivery:
    """一次性结果投递"""

    def __init__(self, request_id: str, handler: ResultHandler):
        self.request_id = request_id
        self.handler = handler
        self._lock = threading.Lock()
        self._delivered = False

    def _claim(self) -> bool:
        with self._lock:
            if self._delivered:
                return False
            self._delivered = True
            return True

    async def deliver(self, result: NetworkResult):
        if not self._claim():
            logger.warning(f"[{self.request_id}] Result already delivered, ignoring")
            return

        try:
            outcome = self.handler(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception(f"[{self.request_id}] Result handler raised")


class TaskDispatcher:
    """任务调度器

    负责：
    - 为每次请求启动一个独立的后台单元（不使用共享的 Worker 池）
    - 请求结束后恰好调用一次回调，且从不在 dispatch() 调用内同步调用

    线程约定：
    - 在运行中的事件循环里调用时，后台单元是一个 asyncio.Task，
      回调在事件循环线程上执行
    - 没有运行中的事件循环时，后台单元是一个独立线程，
      回调在该线程上执行
    """

    def __init__(self):
        # 进行中的后台单元
        self._pending_tasks: Dict[str, Union[asyncio.Task, threading.Thread]] = {}

    @property
    def pending(self) -> int:
        return len(self._pending_tasks)

    def dispatch(
        self,
        request_id: str,
        pipeline: Pipeline,
        handler: ResultHandler
    ) -> Union[asyncio.Task, concurrent.futures.Future]:
        """调度一次请求

        Args:
            request_id: 请求 ID（用于日志和线程命名）
            pipeline: 产生结果的协程函数
            handler: 结果回调

        Returns:
            事件循环内返回 asyncio.Task，否则返回 concurrent.futures.Future；
            两者都在回调执行完毕后以结果完成
        """
        delivery = _Delivery(request_id, handler)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return self._dispatch_thread(request_id, pipeline, delivery)

        return self._dispatch_loop(loop, request_id, pipeline, delivery)

    async def _run(
        self,
        request_id: str,
        pipeline: Pipeline,
        delivery: _Delivery
    ) -> NetworkResult:
        try:
            result = await pipeline()
        except Exception as e:
            logger.exception(f"[{request_id}] Pipeline raised, converting to failed result")
            result = NetworkResult.from_error(e)

        await delivery.deliver(result)
        return result

    def _dispatch_loop(
        self,
        loop: asyncio.AbstractEventLoop,
        request_id: str,
        pipeline: Pipeline,
        delivery: _Delivery
    ) -> asyncio.Task:
        task = loop.create_task(
            self._run(request_id, pipeline, delivery),
            name=f"network-task-{request_id}"
        )
        self._pending_tasks[request_id] = task
        task.add_done_callback(lambda _: self._pending_tasks.pop(request_id, None))

        logger.debug(f"[{request_id}] Dispatched on event loop")
        return task

    def _dispatch_thread(
        self,
        request_id: str,
        pipeline: Pipeline,
        delivery: _Delivery
    ) -> concurrent.futures.Future:
        future: concurrent.futures.Future = concurrent.futures.Future()
        future.set_running_or_notify_cancel()

        def target():
            try:
                result = asyncio.run(self._run(request_id, pipeline, delivery))
            except Exception as e:
                self._pending_tasks.pop(request_id, None)
                future.set_exception(e)
                return

            self._pending_tasks.pop(request_id, None)
            future.set_result(result)

        thread = threading.Thread(target=target, name=f"network-task-{request_id}")
        self._pending_tasks[request_id] = thread
        thread.start()

        logger.debug(f"[{request_id}] Dispatched on background thread")
        return future
