"""
Network Task - 表单编码

查询字符串和 application/x-www-form-urlencoded 请求体使用同一套
逐字段编码规则：键和值分别做 quote_plus（空格编码为 "+"，保留字符转义）。

单个字段编码失败时只跳过该字段并记录日志，不会中断整个请求。
"""

import logging
from typing import List, Mapping

from urllib.parse import quote_plus

from ..errors import FieldEncodingError

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _quote(value, key, encoding: str) -> str:
    if not isinstance(value, str):
        raise FieldEncodingError(key, f"expected str, got {type(value).__name__}")
    try:
        return quote_plus(value, safe="", encoding=encoding, errors="strict")
    except UnicodeEncodeError as e:
        raise FieldEncodingError(key, str(e)) from e


def encode_field(key: str, value: str, encoding: str = "utf-8") -> str:
    """编码单个字段为 key=value

    Raises:
        FieldEncodingError: 键或值不是字符串，或无法用指定编码表示
    """
    return f"{_quote(key, key, encoding)}={_quote(value, key, encoding)}"


def encode_fields(fields: Mapping[str, str], encoding: str = "utf-8") -> List[str]:
    """编码所有字段，跳过编码失败的字段"""
    encoded = []
    for key, value in fields.items():
        try:
            encoded.append(encode_field(key, value, encoding))
        except FieldEncodingError as e:
            logger.warning(f"Skipping field: {e}")
    return encoded


def build_query_url(url: str, params: Mapping[str, str], encoding: str = "utf-8") -> str:
    """将查询参数追加到 URL

    URL 已带查询字符串时用 "&" 续接，否则用 "?" 开始。
    片段（#...）保留在查询字符串之后。
    """
    pairs = encode_fields(params, encoding)
    if not pairs:
        return url

    base, hash_mark, fragment = url.partition("#")
    query = "&".join(pairs)
    if base.endswith(("?", "&")):
        base = base + query
    else:
        separator = "&" if "?" in base else "?"
        base = f"{base}{separator}{query}"
    return f"{base}{hash_mark}{fragment}"


def build_form_body(fields: Mapping[str, str], encoding: str = "utf-8") -> bytes:
    """构建表单请求体，没有可用字段时返回空字节"""
    pairs = encode_fields(fields, encoding)
    return "&".join(pairs).encode("ascii")
