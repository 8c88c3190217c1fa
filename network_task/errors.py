"""
Network Task - 异常定义
"""


class NetworkTaskError(Exception):
    """Network Task 基础异常"""
    pass


class FieldEncodingError(NetworkTaskError):
    """查询参数或表单字段编码失败"""

    def __init__(self, key, reason: str):
        super().__init__(f"Failed to encode field {key!r}: {reason}")
        self.key = key
        self.reason = reason


class MissingErrorError(NetworkTaskError):
    """失败结果缺少异常对象时的占位异常"""
    pass
