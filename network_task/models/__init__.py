"""
数据模型包
"""

from .common import (
    RequestMethod,
    generate_id,
)

from .result import (
    RESULT_ENCODING,
    NetworkResult,
    ResultBuilder,
    is_success_status,
)

__all__ = [
    # Common
    "RequestMethod",
    "generate_id",

    # Result
    "RESULT_ENCODING",
    "NetworkResult",
    "ResultBuilder",
    "is_success_status",
]
