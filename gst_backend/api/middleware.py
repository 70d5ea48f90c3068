"""
ASGI middleware: permissive CORS on every response and reverse-proxy
prefix rewriting.
"""

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class CORSAllMiddleware:
    """Answer every OPTIONS request with 204 and stamp CORS headers on all responses."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = Response(status_code=204, headers=CORS_HEADERS)
            await response(scope, receive, send)
            return

        async def send_with_cors(message: Message):
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in CORS_HEADERS.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)


class StripPrefixMiddleware:
    """Rewrite ``/admin/api/...`` (or another prefix) to ``/api/...`` before routing."""

    def __init__(self, app: ASGIApp, prefix: str = "/admin/api/", replacement: str = "/api/"):
        self.app = app
        self.prefix = prefix
        self.replacement = replacement

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] == "http" and self.prefix and scope["path"].startswith(self.prefix):
            path = self.replacement + scope["path"][len(self.prefix):]
            scope = dict(scope, path=path, raw_path=path.encode("utf-8"))
        await self.app(scope, receive, send)
