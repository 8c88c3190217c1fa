"""
端到端集成测试

使用本地 aiohttp 测试服务器验证完整的请求流程：
从配置请求、后台执行到回调拿到结果。不需要外部网络。

运行方式:
    pytest tests/test_e2e.py -v
"""

import asyncio
import os
import socket
import sys
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp import test_utils

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from network_task import (
    HTTPClientConfig,
    NetworkResult,
    NetworkTask,
    RequestMethod,
)


async def echo(request: web.Request) -> web.Response:
    """返回服务器看到的请求信息"""
    form = await request.post()
    return web.json_response({
        "method": request.method,
        "query_string": request.query_string,
        "query": dict(request.query),
        "form": dict(form),
        "body_length": request.content_length,
        "headers": dict(request.headers),
    })


async def not_found(request: web.Request) -> web.Response:
    return web.Response(status=404, text="not found")


async def redirect(request: web.Request) -> web.Response:
    raise web.HTTPFound("/echo")


async def large(request: web.Request) -> web.Response:
    return web.Response(body=bytes(range(256)) * 40, headers={"X-Custom-Header": "Value"})


def create_app() -> web.Application:
    app = web.Application()
    app.router.add_route("*", "/echo", echo)
    app.router.add_get("/missing", not_found)
    app.router.add_route("*", "/redirect", redirect)
    app.router.add_get("/large", large)
    return app


@asynccontextmanager
async def running_server():
    server = test_utils.TestServer(create_app())
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


def unused_port() -> int:
    """获取一个当前没有监听的本地端口"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def execute_and_collect(task: NetworkTask) -> list:
    """执行请求并收集所有回调结果"""
    received = []
    await task.execute(received.append)
    return received


class TestEndToEnd:
    """端到端测试"""

    @pytest.mark.asyncio
    async def test_get_without_body(self):
        """测试无参数无表单的 GET 不添加 Content-Type"""
        async with running_server() as server:
            received = await execute_and_collect(NetworkTask(str(server.make_url("/echo"))))

        assert len(received) == 1
        result = received[0]
        assert result.success is True
        assert result.status == 200
        assert result.error is None

        data = result.json()
        assert data["method"] == "GET"
        assert data["query_string"] == ""
        assert "Content-Type" not in data["headers"]
        assert data["form"] == {}

    @pytest.mark.asyncio
    async def test_form_post(self):
        """测试表单 POST"""
        async with running_server() as server:
            task = NetworkTask.from_url(str(server.make_url("/echo")), RequestMethod.POST) \
                .with_form_data("gender", "female")
            received = await execute_and_collect(task)

        result = received[0]
        assert result.success is True

        data = result.json()
        assert data["method"] == "POST"
        assert data["form"] == {"gender": "female"}
        assert data["body_length"] == len(b"gender=female")
        assert data["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert data["headers"]["Content-Length"] == str(len(b"gender=female"))
        assert data["headers"]["charset"] == "utf-8"

    @pytest.mark.asyncio
    async def test_query_parameters_escaped(self):
        """测试查询参数转义"""
        async with running_server() as server:
            task = NetworkTask(str(server.make_url("/echo"))) \
                .with_parameter("q", "a b&c=d") \
                .with_parameter("bad", "\ud800") \
                .with_parameter("page", "2")
            received = await execute_and_collect(task)

        data = received[0].json()
        assert data["query"] == {"q": "a b&c=d", "page": "2"}
        assert data["query_string"].count("&") == 1

    @pytest.mark.asyncio
    async def test_query_parameters_with_fragment(self):
        """测试 URL 带片段时查询参数仍然送达服务器"""
        async with running_server() as server:
            task = NetworkTask(str(server.make_url("/echo")) + "#top").with_parameter("q", "1")
            received = await execute_and_collect(task)

        assert received[0].json()["query"] == {"q": "1"}

    @pytest.mark.asyncio
    async def test_headers_sent(self):
        """测试自定义请求头"""
        async with running_server() as server:
            task = NetworkTask(str(server.make_url("/echo"))).with_header("X-Token", "secret")
            received = await execute_and_collect(task)

        assert received[0].json()["headers"]["X-Token"] == "secret"

    @pytest.mark.asyncio
    async def test_not_found(self):
        """测试 404 不是错误"""
        async with running_server() as server:
            received = await execute_and_collect(NetworkTask(str(server.make_url("/missing"))))

        assert len(received) == 1
        result = received[0]
        assert result.success is False
        assert result.error is None
        assert result.status == 404
        assert result.to_text() == "not found"

    @pytest.mark.asyncio
    async def test_unreachable_host(self):
        """测试连接失败"""
        task = NetworkTask(f"http://127.0.0.1:{unused_port()}/", config=HTTPClientConfig(timeout=5))
        received = await execute_and_collect(task)

        assert len(received) == 1
        result = received[0]
        assert result.success is False
        assert result.status is None
        assert result.error is not None
        assert result.body == b""

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        """测试无效 URL 也只产生失败结果"""
        received = await execute_and_collect(NetworkTask("not a url"))

        assert len(received) == 1
        assert received[0].success is False
        assert received[0].error is not None

    @pytest.mark.asyncio
    async def test_redirect_followed_without_form(self):
        """测试没有表单时跟随重定向"""
        async with running_server() as server:
            received = await execute_and_collect(NetworkTask(str(server.make_url("/redirect"))))

        assert received[0].status == 200
        assert received[0].json()["method"] == "GET"

    @pytest.mark.asyncio
    async def test_redirect_not_followed_with_form(self):
        """测试带表单时不跟随重定向"""
        async with running_server() as server:
            task = NetworkTask(str(server.make_url("/redirect")), "POST").with_form_data("a", "1")
            received = await execute_and_collect(task)

        result = received[0]
        assert result.status == 302
        assert result.success is False
        assert result.error is None

    @pytest.mark.asyncio
    async def test_chunked_read_and_headers(self):
        """测试分块读取完整响应体并保留响应头大小写"""
        async with running_server() as server:
            config = HTTPClientConfig(chunk_size=100)
            result = await NetworkTask(str(server.make_url("/large")), config=config).fetch()

        assert result.to_bytes() == bytes(range(256)) * 40
        assert result.length() == 256 * 40
        assert result.header("X-Custom-Header") == "Value"

    @pytest.mark.asyncio
    async def test_base_url(self):
        """测试 base_url 拼接"""
        async with running_server() as server:
            config = HTTPClientConfig(base_url=str(server.make_url("/")))
            result = await NetworkTask("/echo", config=config).fetch()

        assert result.success is True

    @pytest.mark.asyncio
    async def test_concurrent_executions(self):
        """测试多个请求互不影响"""
        async with running_server() as server:
            tasks = [
                NetworkTask(str(server.make_url("/echo"))).with_parameter("n", str(i))
                for i in range(5)
            ]
            received = []
            await asyncio.gather(*(task.execute(received.append) for task in tasks))

        assert len(received) == 5
        assert sorted(r.json()["query"]["n"] for r in received) == ["0", "1", "2", "3", "4"]
        assert all(isinstance(r, NetworkResult) for r in received)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "-s"])
