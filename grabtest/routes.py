from fastapi import APIRouter, Request

from grabtest.handlers import handle_request

handler_router = APIRouter()


async def serve_synthetic_content(request: Request):
    """Serve the synthetic resource at every path using the app's behavior."""
    return await handle_request(request, request.app.state.behavior)


# methods=None leaves every request method to the handler's own whitelist
handler_router.add_route("/{path:path}", serve_synthetic_content, include_in_schema=False)
