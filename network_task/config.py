"""
Network Task - 配置管理
"""

import os
from typing import Optional

from pydantic import BaseModel, Field


class HTTPClientConfig(BaseModel):
    """HTTP 客户端配置"""
    base_url: Optional[str] = Field(None, description="相对 URL 的前缀，为空时不拼接")
    timeout: Optional[float] = Field(None, gt=0, description="请求超时（秒），为空时使用 aiohttp 默认值")
    chunk_size: int = Field(1024, ge=1, description="读取响应体的块大小（字节）")
    encoding: str = Field("utf-8", description="查询参数和表单字段的编码")

    def resolve_url(self, url: str) -> str:
        """拼接 base_url（仅对相对 URL 生效）"""
        if not self.base_url or "://" in url:
            return url
        return self.base_url.rstrip("/") + "/" + url.lstrip("/")

    @classmethod
    def from_env(cls) -> "HTTPClientConfig":
        """从环境变量加载配置"""
        timeout = os.getenv("NETWORK_TASK_TIMEOUT")

        return cls(
            base_url=os.getenv("NETWORK_TASK_BASE_URL") or None,
            timeout=float(timeout) if timeout else None,
            chunk_size=int(os.getenv("NETWORK_TASK_CHUNK_SIZE", "1024")),
        )
