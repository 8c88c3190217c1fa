"""
数据模型 - 请求结果

NetworkResult 是一次 HTTP 请求的统一结果：成功标志、响应体、状态码、
响应头以及可能捕获的异常。结果在构造后不可变，流水线通过 ResultBuilder
逐步收集响应信息，最后一次性生成结果。
"""

import json
import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..errors import MissingErrorError

logger = logging.getLogger(__name__)

RESULT_ENCODING = "utf-8"


def is_success_status(status: Optional[int]) -> bool:
    """状态码是否在 2xx 范围内"""
    return status is not None and 200 <= status < 300


class NetworkResult(BaseModel):
    """HTTP 请求结果

    区分两类失败：
    - 服务端拒绝（如 404/500）：success=False，status 有值，error 为空
    - 无法与服务端通信（连接失败、DNS、超时等）：success=False，
      status 为空，error 为捕获的异常

    Usage:
        result = NetworkResult.from_bytes(b"hello", status=200)
        result.to_text()    # "hello"
        result.is_success() # True
    """
    body: bytes = Field(b"", description="原始响应体")
    success: bool = Field(False, description="请求是否成功")
    status: Optional[int] = Field(None, description="HTTP 状态码")
    headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True, description="响应头（只读）")
    error: Optional[BaseException] = Field(None, description="捕获的异常")

    class Config:
        frozen = True
        arbitrary_types_allowed = True

    @model_validator(mode="before")
    @classmethod
    def _error_forces_failure(cls, data: Any) -> Any:
        # 带异常的结果一定是失败的
        if isinstance(data, dict) and data.get("error") is not None:
            data = {**data, "success": False}
        return data

    @field_validator("headers", mode="after")
    @classmethod
    def _freeze_headers(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    # ==================== 构造 ====================

    @classmethod
    def from_bytes(
        cls,
        body: Optional[bytes],
        status: Optional[int] = None,
        success: Optional[bool] = None,
        headers: Optional[Mapping[str, str]] = None
    ) -> "NetworkResult":
        """从字节构造结果

        Args:
            body: 响应体（原样保存）
            status: HTTP 状态码
            success: 显式指定成功标志；为空时由状态码推断，
                没有状态码时默认为成功
            headers: 响应头

        Returns:
            请求结果
        """
        if body is None:
            logger.error("Cannot build result from None body, returning empty failed result")
            return cls(status=status, headers=dict(headers or {}))

        if success is None:
            success = is_success_status(status) if status is not None else True

        return cls(
            body=body,
            success=success,
            status=status,
            headers=dict(headers or {})
        )

    @classmethod
    def from_text(cls, text: Optional[str], success: bool = True) -> "NetworkResult":
        """从字符串构造结果（UTF-8 编码）"""
        if text is None:
            logger.error("Cannot build result from None text, returning empty failed result")
            return cls()

        return cls(body=text.encode(RESULT_ENCODING), success=success)

    @classmethod
    def from_error(cls, error: Optional[BaseException]) -> "NetworkResult":
        """从捕获的异常构造失败结果

        body 为空，status 为空，success 恒为 False。
        """
        if error is None:
            logger.error("Cannot build result from None error, storing placeholder error")
            error = MissingErrorError("Result was built from a failure without an exception")

        return cls(error=error)

    # ==================== 访问 ====================

    def to_text(self) -> str:
        """按 UTF-8 解码响应体，空响应体返回空字符串"""
        if not self.body:
            return ""
        return self.body.decode(RESULT_ENCODING, errors="replace")

    @property
    def text(self) -> str:
        """文本响应"""
        return self.to_text()

    def to_bytes(self) -> bytes:
        """原始响应体（共享对象，调用方不应修改）"""
        return self.body

    def json(self) -> Any:
        """JSON 响应"""
        return json.loads(self.to_text())

    def length(self) -> int:
        return len(self.body)

    def is_success(self) -> bool:
        return self.success

    def header(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """获取响应头（键区分大小写，与传输层返回的一致）"""
        return self.headers.get(key, default)

    def __str__(self) -> str:
        return self.to_text()


class ResultBuilder:
    """结果构建器

    仅供请求流水线使用：逐步记录状态码、响应头和响应体，
    最后调用 build() 生成唯一的不可变结果。
    """

    def __init__(self):
        self._buffer = bytearray()
        self._status: Optional[int] = None
        self._headers: Dict[str, str] = {}
        self._error: Optional[BaseException] = None

    def set_status(self, status: int) -> "ResultBuilder":
        self._status = status
        return self

    def set_headers(self, headers: Mapping[str, str]) -> "ResultBuilder":
        self._headers = dict(headers)
        return self

    def write(self, chunk: bytes) -> "ResultBuilder":
        """追加一段响应体"""
        self._buffer.extend(chunk)
        return self

    def set_error(self, error: BaseException) -> "ResultBuilder":
        """记录异常，之后 build() 只会生成失败结果"""
        self._error = error
        return self

    @property
    def has_error(self) -> bool:
        return self._error is not None

    @property
    def size(self) -> int:
        return len(self._buffer)

    def build(self) -> NetworkResult:
        if self._error is not None:
            return NetworkResult.from_error(self._error)

        return NetworkResult.from_bytes(
            bytes(self._buffer),
            status=self._status,
            headers=self._headers
        )
