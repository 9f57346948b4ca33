from fastapi import Request
from notekeeper.context import AppContext


# Dependency to get the application context created by the lifespan
async def get_context(request: Request) -> AppContext:
    """
    Return the AppContext owned by the running application.
    The storage backend inside it was chosen once, at startup.
    """
    return request.app.state.context


__all__ = ["get_context"]
