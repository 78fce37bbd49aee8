"""Unit tests for FastAPI integration."""

import inspect
from unittest.mock import Mock

import pytest
from fastapi import FastAPI, Request
from starlette.responses import Response

from rulewire_di.application.container import DIContainer
from rulewire_di.domain.exceptions import TypeNotFoundError
from rulewire_di.domain.models import SharedPool
from rulewire_di.infrastructure.fastapi_integration.integration import (
    RequestScopeMiddleware,
    create_fastapi_dependency,
    create_scoped_dependency,
    inject_dependencies,
)


def make_request(container=None, pool=None):
    request = Mock(spec=Request)
    request.state = Mock()
    request.state.di_container = container
    request.state.di_share_pool = pool if pool is not None else SharedPool()
    return request


class TestCreateFastAPIDependency:
    """Test cases for create_fastapi_dependency function."""

    def test_creates_dependency_function(self):
        """Test that create_fastapi_dependency returns a callable."""

        class TestService:
            pass

        dependency_func = create_fastapi_dependency(DIContainer(), TestService)

        assert callable(dependency_func)

    def test_dependency_function_creates_from_container(self):
        """Test that the dependency function builds from the container."""

        class Repository:
            pass

        class TestService:
            def __init__(self, repo: Repository):
                self.repo = repo

        dependency_func = create_fastapi_dependency(DIContainer(), TestService)
        instance = dependency_func()

        assert isinstance(instance, TestService)
        assert isinstance(instance.repo, Repository)

    def test_dependency_function_returns_shared_instance(self):
        """Test that shared rules return the same instance."""
        container = DIContainer()

        class SharedService:
            pass

        container.add_rule(SharedService, {"shared": True})
        dependency_func = create_fastapi_dependency(container, SharedService)

        assert dependency_func() is dependency_func()

    def test_dependency_function_returns_new_instances(self):
        """Test that non-shared rules build a new instance per call."""

        class TransientService:
            pass

        dependency_func = create_fastapi_dependency(DIContainer(), TransientService)

        assert dependency_func() is not dependency_func()

    def test_dependency_function_passes_args(self):
        """Test that configured args reach the constructor."""

        class Greeter:
            def __init__(self, greeting):
                self.greeting = greeting

        dependency_func = create_fastapi_dependency(DIContainer(), Greeter, ["hello"])

        assert dependency_func().greeting == "hello"

    def test_dependency_function_raises_for_unknown_identifier(self):
        """Test that unknown identifiers raise at resolution time."""
        dependency_func = create_fastapi_dependency(DIContainer(), "no_such_module_xyz.Service")

        with pytest.raises(TypeNotFoundError):
            dependency_func()


class TestCreateScopedDependency:
    """Test cases for create_scoped_dependency function."""

    def test_scoped_dependency_creates_instance(self):
        """Test that the scoped dependency builds from the request's container."""

        class ScopedService:
            def __init__(self):
                self.value = "scoped"

        dependency_func = create_scoped_dependency(ScopedService)
        instance = dependency_func(make_request(DIContainer()))

        assert isinstance(instance, ScopedService)
        assert instance.value == "scoped"

    def test_scoped_dependency_raises_error_without_middleware(self):
        """Test that scoped dependency raises error without middleware."""

        class ScopedService:
            pass

        request = Mock(spec=Request)
        request.state = Mock(spec=[])  # No di_container attribute

        dependency_func = create_scoped_dependency(ScopedService)

        with pytest.raises(RuntimeError) as exc_info:
            dependency_func(request)

        assert "Did you forget to add RequestScopeMiddleware" in str(exc_info.value)

    def test_same_request_gets_same_instance(self):
        """Test that an identifier is built once per request."""

        class RequestContext:
            pass

        request = make_request(DIContainer())
        dependency_func = create_scoped_dependency(RequestContext)

        assert dependency_func(request) is dependency_func(request)

    def test_different_requests_get_different_instances(self):
        """Test that each request has its own instances."""

        class RequestContext:
            pass

        container = DIContainer()
        dependency_func = create_scoped_dependency(RequestContext)

        assert dependency_func(make_request(container)) is not dependency_func(make_request(container))

    def test_request_instances_are_injected_into_later_dependencies(self):
        """Test that objects already built for a request are reused as dependencies."""

        class RequestContext:
            pass

        class AuditLog:
            def __init__(self, context: RequestContext):
                self.context = context

        request = make_request(DIContainer())
        context = create_scoped_dependency(RequestContext)(request)
        audit = create_scoped_dependency(AuditLog)(request)

        assert audit.context is context


class TestRequestScopeMiddleware:
    """Test cases for RequestScopeMiddleware."""

    def test_middleware_initialization(self):
        """Test that middleware initializes correctly."""
        app = FastAPI()
        container = DIContainer()

        middleware = RequestScopeMiddleware(app, container)

        assert middleware.container is container
        assert middleware.app is app

    @pytest.mark.asyncio
    async def test_middleware_attaches_container_and_pool(self):
        """Test that the request state carries the container and a fresh pool."""
        container = DIContainer()
        middleware = RequestScopeMiddleware(FastAPI(), container)

        request = Mock(spec=Request)
        request.state = Mock()
        seen = {}

        async def mock_call_next(req):
            seen["container"] = req.state.di_container
            seen["pool"] = req.state.di_share_pool
            return Response("OK", status_code=200)

        response = await middleware.dispatch(request, mock_call_next)

        assert response.status_code == 200
        assert seen["container"] is container
        assert isinstance(seen["pool"], SharedPool)

    @pytest.mark.asyncio
    async def test_middleware_empties_pool_after_request(self):
        """Test that request instances are released after the response."""
        middleware = RequestScopeMiddleware(FastAPI(), DIContainer())
        request = Mock(spec=Request)
        request.state = Mock()

        async def mock_call_next(req):
            req.state.di_share_pool.add("app.Context", object())
            return Response("OK", status_code=200)

        await middleware.dispatch(request, mock_call_next)

        assert list(request.state.di_share_pool) == []
        assert request.state.di_share_pool.members == {}

    @pytest.mark.asyncio
    async def test_middleware_empties_pool_on_exception(self):
        """Test that the pool is released even when the endpoint fails."""
        middleware = RequestScopeMiddleware(FastAPI(), DIContainer())
        request = Mock(spec=Request)
        request.state = Mock()

        async def mock_call_next(req):
            req.state.di_share_pool.add("app.Context", object())
            raise ValueError("Test error")

        with pytest.raises(ValueError, match="Test error"):
            await middleware.dispatch(request, mock_call_next)

        assert list(request.state.di_share_pool) == []


class TestInjectDependencies:
    """Test cases for inject_dependencies decorator."""

    @pytest.mark.asyncio
    async def test_injects_leading_parameters(self):
        """Test that leading parameters receive created objects."""

        class UserService:
            pass

        container = DIContainer()
        container.add_rule(UserService, {"shared": True})

        @inject_dependencies(container, UserService)
        async def endpoint(service: UserService, user_id: int):
            return service, user_id

        service, user_id = await endpoint(user_id=7)

        assert service is container.create(UserService)
        assert user_id == 7

    @pytest.mark.asyncio
    async def test_explicit_arguments_win(self):
        """Test that callers can pass injected parameters themselves."""

        class UserService:
            pass

        override = UserService()

        @inject_dependencies(DIContainer(), UserService)
        async def endpoint(service: UserService):
            return service

        assert await endpoint(service=override) is override

    @pytest.mark.asyncio
    async def test_sync_functions_are_supported(self):
        """Test decorating a regular function."""

        class Clock:
            pass

        @inject_dependencies(DIContainer(), Clock)
        def endpoint(clock: Clock):
            return clock

        assert isinstance(await endpoint(), Clock)

    def test_signature_hides_injected_parameters(self):
        """Test that FastAPI only sees the remaining parameters."""

        class UserService:
            pass

        @inject_dependencies(DIContainer(), UserService)
        async def endpoint(service: UserService, user_id: int):
            return user_id

        assert list(inspect.signature(endpoint).parameters) == ["user_id"]
        assert endpoint.__name__ == "endpoint"
