"""
Network Task - HTTP 模块

负责 HTTP 传输和查询参数 / 表单字段编码。
"""

from .async_client import AsyncHTTPClient, collect_headers
from .encoding import (
    FORM_CONTENT_TYPE,
    encode_field,
    encode_fields,
    build_query_url,
    build_form_body,
)

__all__ = [
    "AsyncHTTPClient",
    "collect_headers",
    "FORM_CONTENT_TYPE",
    "encode_field",
    "encode_fields",
    "build_query_url",
    "build_form_body",
]
