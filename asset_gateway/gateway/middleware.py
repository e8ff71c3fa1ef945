from starlette.types import ASGIApp, Message, Receive, Scope, Send

# Never forwarded, whether the body comes from disk or from the remote host
STRIPPED_RESPONSE_HEADERS = (b"content-encoding", b"transfer-encoding", b"accept-ranges")


class StripFramingHeadersMiddleware:
    """ASGI middleware removing framing-sensitive headers from every response start."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_filtered(message: Message) -> None:
            if message["type"] == "http.response.start":
                message = dict(message)
                message["headers"] = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() not in STRIPPED_RESPONSE_HEADERS
                ]
            await send(message)

        await self.app(scope, receive, send_filtered)
