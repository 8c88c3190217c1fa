"""
Network Task - 异步 HTTP 传输
"""

import logging
from typing import Iterable, Optional, Tuple

from aiohttp import ClientSession, ClientTimeout, TCPConnector
from multidict import CIMultiDict
from yarl import URL

from ..config import HTTPClientConfig
from ..models import ResultBuilder

logger = logging.getLogger(__name__)


class AsyncHTTPClient:
    """异步 HTTP 传输

    负责：
    - 打开连接（每个实例独占自己的会话，不复用连接）
    - 设置请求方法和请求头
    - 写入请求体
    - 分块读取状态码、响应头和响应体

    不做重试，不做取消。
    """

    def __init__(self, config: HTTPClientConfig):
        self.config = config
        self._session: Optional[ClientSession] = None

    async def connect(self):
        """打开会话"""
        if self._session is None:
            connector = TCPConnector(force_close=True)

            # 未配置超时时沿用 aiohttp 默认值
            kwargs = {}
            if self.config.timeout is not None:
                kwargs["timeout"] = ClientTimeout(total=self.config.timeout)

            self._session = ClientSession(connector=connector, **kwargs)
            logger.debug("HTTP session opened")

    async def disconnect(self):
        """关闭会话"""
        if self._session:
            await self._session.close()
            self._session = None
            logger.debug("HTTP session closed")

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError("HTTP client not connected. Call connect() first.")
        return self._session

    async def send(
        self,
        method: str,
        url: str,
        builder: ResultBuilder,
        headers: Optional[Iterable[Tuple[str, str]]] = None,
        data: Optional[bytes] = None,
        allow_redirects: bool = True
    ) -> ResultBuilder:
        """发送一次请求，把响应写入 builder

        Args:
            method: HTTP 方法
            url: 已编码的完整 URL（不会被再次转义）
            builder: 结果构建器
            headers: 请求头，按给定顺序逐个添加，不去重
            data: 请求体
            allow_redirects: 是否自动跟随重定向

        Returns:
            传入的 builder

        Raises:
            aiohttp.ClientError: 连接或协议错误
            asyncio.TimeoutError: 超时
        """
        request_headers = CIMultiDict()
        for key, value in headers or ():
            request_headers.add(key, value)

        async with self.session.request(
            method=method,
            url=URL(url, encoded=True),
            headers=request_headers,
            data=data,
            allow_redirects=allow_redirects
        ) as response:
            logger.debug(f"Reading response: {response.status} {response.reason}")
            builder.set_status(response.status)
            builder.set_headers(collect_headers(response.headers))

            while True:
                chunk = await response.content.read(self.config.chunk_size)
                if not chunk:
                    break
                builder.write(chunk)

            logger.debug(f"Read {builder.size} bytes from {url}")

        return builder

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


def collect_headers(headers) -> dict:
    """收集响应头，保留原始大小写；重复的头用 ", " 合并"""
    collected = {}
    for key, value in headers.items():
        if key in collected:
            collected[key] = f"{collected[key]}, {value}"
        else:
            collected[key] = value
    return collected
