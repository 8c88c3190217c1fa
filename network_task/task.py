"""
Network Task - 请求入口
"""

import logging
from typing import Dict, List, Optional, Tuple, Union

from .config import HTTPClientConfig
from .dispatcher import TaskDispatcher, ResultHandler
from .http import AsyncHTTPClient, FORM_CONTENT_TYPE, build_form_body, build_query_url
from .models import NetworkResult, RequestMethod, ResultBuilder, generate_id

logger = logging.getLogger(__name__)


class NetworkTask:
    """一次 HTTP 请求的描述及其执行入口

    在 execute() 之前可以任意多次配置；执行期间不应再修改。

    Usage:
        task = NetworkTask.from_url("https://randomuser.me/api") \\
            .with_parameter("gender", "female")

        # 回调方式（恰好调用一次，成功或失败都会调用）
        task.execute(lambda result: print(result.status, result.to_text()))

        # 协程方式
        result = await task.fetch()
    """

    def __init__(
        self,
        url: str,
        method: Union[RequestMethod, str] = RequestMethod.GET,
        config: Optional[HTTPClientConfig] = None,
        dispatcher: Optional[TaskDispatcher] = None
    ):
        self.config = config or HTTPClientConfig.from_env()
        self.dispatcher = dispatcher or TaskDispatcher()

        self._url = url
        self._method = RequestMethod.parse(method)
        self._headers: Dict[str, str] = {}
        self._parameters: Dict[str, str] = {}
        self._form_data: Dict[str, str] = {}

    @classmethod
    def from_url(
        cls,
        url: str,
        method: Union[RequestMethod, str] = RequestMethod.GET,
        config: Optional[HTTPClientConfig] = None
    ) -> "NetworkTask":
        """创建请求（链式配置的起点）"""
        return cls(url, method, config=config)

    # ==================== 配置 ====================

    @property
    def url(self) -> str:
        return self._url

    @property
    def method(self) -> RequestMethod:
        return self._method

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    @property
    def parameters(self) -> Dict[str, str]:
        return dict(self._parameters)

    @property
    def form_data(self) -> Dict[str, str]:
        return dict(self._form_data)

    def set_url(self, url: str):
        self._url = url

    def set_request_method(self, method: Union[RequestMethod, str]):
        self._method = RequestMethod.parse(method)

    def add_header(self, key: str, value: str):
        self._headers[key] = value

    def add_parameter(self, key: str, value: str):
        self._parameters[key] = value

    def add_form_data(self, key: str, value: str):
        self._form_data[key] = value

    def with_url(self, url: str) -> "NetworkTask":
        self.set_url(url)
        return self

    def with_method(self, method: Union[RequestMethod, str]) -> "NetworkTask":
        self.set_request_method(method)
        return self

    def with_header(self, key: str, value: str) -> "NetworkTask":
        self.add_header(key, value)
        return self

    def with_parameter(self, key: str, value: str) -> "NetworkTask":
        self.add_parameter(key, value)
        return self

    def with_form_data(self, key: str, value: str) -> "NetworkTask":
        self.add_form_data(key, value)
        return self

    # ==================== 请求构建 ====================

    def build_url(self) -> str:
        """最终请求 URL（base_url + 查询参数）

        编码失败的参数会被跳过。
        """
        url = self.config.resolve_url(self._url)
        return build_query_url(url, self._parameters, self.config.encoding)

    def build_body(self) -> bytes:
        """表单请求体，没有表单字段时为空"""
        if not self._form_data:
            return b""
        return build_form_body(self._form_data, self.config.encoding)

    def build_headers(self, body: bytes) -> List[Tuple[str, str]]:
        """请求头列表

        只有表单请求体非空时才追加 Content-Type 等表单相关的头。
        """
        headers = list(self._headers.items())
        if body:
            headers.extend([
                ("Content-Type", FORM_CONTENT_TYPE),
                ("charset", self.config.encoding),
                ("Content-Length", str(len(body))),
                ("Cache-Control", "no-cache"),
            ])
        return headers

    # ==================== 执行 ====================

    async def fetch(self, request_id: Optional[str] = None) -> NetworkResult:
        """执行请求并返回结果

        不会因为传输错误抛出异常：连接失败、超时、I/O 错误都会
        被捕获为失败结果（error 有值，status 为空）。非 2xx 响应
        不视为错误，success 由状态码决定。

        Args:
            request_id: 请求 ID（用于日志）

        Returns:
            请求结果
        """
        request_id = request_id or generate_id("req")
        builder = ResultBuilder()

        try:
            url = self.build_url()
            body = self.build_body()
            headers = self.build_headers(body)
            method = self._method.value

            logger.info(f"[{request_id}] Opening connection to {url} HTTP-{method}")

            async with AsyncHTTPClient(self.config) as http:
                # 带表单请求体时不自动跟随重定向
                await http.send(
                    method,
                    url,
                    builder,
                    headers=headers,
                    data=body or None,
                    allow_redirects=not body
                )

        except Exception as e:
            logger.warning(f"[{request_id}] Failed to get data: {e!r}")
            builder.set_error(e)

        result = builder.build()
        logger.info(
            f"[{request_id}] Completed: success={result.success} "
            f"status={result.status} bytes={result.length()}"
        )
        return result

    def execute(self, handler: ResultHandler):
        """在后台执行请求，完成后调用一次 handler

        handler 从不在 execute() 内同步调用。事件循环内调用时返回
        asyncio.Task，回调在事件循环线程执行；否则启动独立线程，
        返回 concurrent.futures.Future，回调在该线程执行。

        Args:
            handler: 结果回调，可以是普通函数或协程函数

        Returns:
            以结果完成的 Task / Future
        """
        request_id = generate_id("req")

        # 执行使用当前配置的快照
        snapshot = self.copy()

        return self.dispatcher.dispatch(
            request_id,
            lambda: snapshot.fetch(request_id),
            handler
        )

    def copy(self) -> "NetworkTask":
        """复制当前配置"""
        task = NetworkTask(self._url, self._method, config=self.config, dispatcher=self.dispatcher)
        task._headers = dict(self._headers)
        task._parameters = dict(self._parameters)
        task._form_data = dict(self._form_data)
        return task

    def __repr__(self) -> str:
        return f"NetworkTask(method={self._method.value}, url={self._url!r})"
