"""
Network Task - 主入口包

Network Task 提供一个最小的异步 HTTP 请求封装：
- 描述请求（URL、方法、请求头、查询参数、表单字段）
- 在后台执行
- 通过回调恰好一次地拿到统一的结果对象

主要组件：
- NetworkTask: 请求描述及执行入口
- NetworkResult: 统一的请求结果
- RequestMethod: HTTP 方法
- HTTPClientConfig: 配置
- AsyncHTTPClient: HTTP 传输
- TaskDispatcher: 后台调度
"""

from .task import NetworkTask
from .config import HTTPClientConfig
from .models import NetworkResult, RequestMethod
from .http import AsyncHTTPClient
from .dispatcher import TaskDispatcher, ResultHandler
from .errors import NetworkTaskError, FieldEncodingError, MissingErrorError

__version__ = "0.1.0"

__all__ = [
    # 请求
    "NetworkTask",
    "RequestMethod",

    # 结果
    "NetworkResult",

    # 配置
    "HTTPClientConfig",

    # HTTP 传输
    "AsyncHTTPClient",

    # 后台调度
    "TaskDispatcher",
    "ResultHandler",

    # 异常
    "NetworkTaskError",
    "FieldEncodingError",
    "MissingErrorError",
]
