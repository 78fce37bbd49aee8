import functools
import inspect
from typing import Any, Awaitable, Callable, Optional, Sequence

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from rulewire_di.domain import IContainer, SharedPool


def create_fastapi_dependency(
    container: IContainer,
    identifier: Any,
    args: Optional[Sequence[Any]] = None,
) -> Callable[[], Any]:
    """Create a FastAPI Depends() callable that builds from the DI container.

    Whether each call returns a new object or a shared one follows the rule
    the container has for the identifier.

    Args:
        container: The DI container to create instances from.
        identifier: Class or string identifier to create.
        args: Optional values offered to the constructor on every call.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> container = DIContainer()
        >>> container.add_rule(DatabaseConnection, {"shared": True})
        >>>
        >>> get_user_repo = create_fastapi_dependency(container, UserRepository)
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: UserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> Any:
        """Create the dependency from the container."""
        return container.create(identifier, list(args or ()))

    return dependency


def create_scoped_dependency(identifier: Any) -> Callable[[Request], Any]:
    """Create a FastAPI dependency that is built once per request.

    The first resolution within a request creates the object using the
    request's shared pool, so objects already created for the same request
    are injected into it. Later resolutions in the same request return the
    same object.

    Requires the RequestScopeMiddleware to be installed.

    Args:
        identifier: Class or string identifier to create.

    Returns:
        A callable that resolves within the current request.

    Raises:
        RuntimeError: At request time, if the middleware is not installed.

    Example:
        >>> app.add_middleware(RequestScopeMiddleware, container=container)
        >>>
        >>> get_request_context = create_scoped_dependency(RequestContext)
        >>>
        >>> @app.get("/process")
        >>> async def process_request(ctx: RequestContext = Depends(get_request_context)):
        ...     return {"request_id": ctx.request_id}
    """

    def scoped_dependency(request: Request) -> Any:
        """Resolve within the request's shared pool."""
        if not hasattr(request.state, "di_container"):
            raise RuntimeError(
                "Request does not have a DI container. Did you forget to add RequestScopeMiddleware?"
            )
        container: IContainer = request.state.di_container
        pool: SharedPool = request.state.di_share_pool

        if pool.has(identifier):
            return pool.member(identifier)

        instance = container.create(identifier, [], pool)
        pool.add(identifier, instance)
        return instance

    return scoped_dependency


class RequestScopeMiddleware(BaseHTTPMiddleware):
    """Middleware that opens a shared pool for each request.

    The container is exposed as ``request.state.di_container`` and the pool
    as ``request.state.di_share_pool``. The pool is discarded when the
    response has been produced.

    Attributes:
        container: The DI container requests create objects from.

    Example:
        >>> container = DIContainer()
        >>> container.add_rule(DatabaseConnection, {"shared": True})
        >>>
        >>> app = FastAPI()
        >>> app.add_middleware(RequestScopeMiddleware, container=container)
    """

    def __init__(self, app: FastAPI, container: IContainer):
        """Initialize the middleware.

        Args:
            app: The FastAPI/Starlette application.
            container: The DI container to create objects from.
        """
        super().__init__(app)
        self.container = container

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Attach the container and a fresh pool, then run the endpoint.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            The response from the endpoint.
        """
        request.state.di_container = self.container
        request.state.di_share_pool = SharedPool()

        try:
            return await call_next(request)
        finally:
            request.state.di_share_pool.clear()
            request.state.di_share_pool.members.clear()


def inject_dependencies(container: IContainer, *identifiers: Any) -> Callable:
    """Decorator that creates objects from a container and passes them in.

    The leading parameters of the decorated function receive one object per
    identifier, in order, unless the caller passes them explicitly. Those
    parameters are removed from the wrapper's signature, so FastAPI only sees
    the remaining ones.

    Args:
        container: The DI container to create objects from.
        *identifiers: Identifiers to create, matched to leading parameters.

    Returns:
        A decorator function.

    Example:
        >>> @app.get("/users")
        >>> @inject_dependencies(container, UserService, AuditLog)
        >>> async def list_users(user_service: UserService, audit: AuditLog):
        ...     audit.record("list users")
        ...     return await user_service.get_all()
    """

    def decorator(func: Callable) -> Callable:
        """Wrap the function with dependency injection logic."""
        signature = inspect.signature(func)
        parameters = list(signature.parameters.values())
        injected = [parameter.name for parameter in parameters[: len(identifiers)]]

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            """Create missing dependencies and call the original function."""
            for name, identifier in zip(injected, identifiers):
                if name not in kwargs:
                    kwargs[name] = container.create(identifier)

            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result

        wrapper.__signature__ = signature.replace(  # type: ignore[attr-defined]
            parameters=[parameter for parameter in parameters if parameter.name not in injected]
        )
        return wrapper

    return decorator
