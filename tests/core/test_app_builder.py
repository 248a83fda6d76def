"""
Test suite for AppBuilder.

Tests plugin registration, middleware ordering and lifespan hook execution.
"""

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from starlette.middleware.base import BaseHTTPMiddleware

from apptrack.core.factory import AppBuilder


class RecordingPlugin:
    """Plugin that registers one startup and one shutdown hook."""

    def __init__(self, name: str, events: list[str], priority: int = 50):
        self.name = name
        self.events = events
        self.priority = priority
        self.configure_called = False

    def configure(self, builder: AppBuilder) -> None:
        self.configure_called = True
        builder.add_startup_hook(self.startup, priority=self.priority)
        builder.add_shutdown_hook(self.shutdown, priority=self.priority)

    async def startup(self, app: FastAPI) -> None:
        self.events.append(f"{self.name}_startup")

    async def shutdown(self, app: FastAPI) -> None:
        self.events.append(f"{self.name}_shutdown")


class TagMiddleware(BaseHTTPMiddleware):
    """Appends its name to a shared list on the way in."""

    def __init__(self, app, name: str, calls: list[str]):
        super().__init__(app)
        self.name = name
        self.calls = calls

    async def dispatch(self, request: Request, call_next):
        self.calls.append(self.name)
        return await call_next(request)


class TestAppBuilderCore:
    def test_builder_initialization(self):
        builder = AppBuilder()

        assert builder.plugins == []
        assert builder.middlewares == []
        assert builder.routers == []
        assert builder.startup_hooks == []
        assert builder.shutdown_hooks == []
        assert builder.config_overrides == {}

    def test_fluent_interface(self):
        builder = AppBuilder()
        plugin = RecordingPlugin("p", [])

        async def hook(app):
            pass

        result = (
            builder.add_plugin(plugin)
            .add_middleware(TagMiddleware, priority=80, name="m", calls=[])
            .add_startup_hook(hook, priority=60)
            .add_shutdown_hook(hook, priority=40)
            .configure(title="Test App")
        )

        assert result is builder
        assert builder.plugins == [plugin]
        middleware_class, kwargs, priority = builder.middlewares[0]
        assert middleware_class is TagMiddleware
        assert kwargs["name"] == "m"
        assert priority == 80
        assert builder.startup_hooks == [(hook, 60)]
        assert builder.shutdown_hooks == [(hook, 40)]

    def test_default_priorities(self):
        builder = AppBuilder()

        async def hook(app):
            pass

        builder.add_middleware(TagMiddleware, name="default", calls=[])
        builder.add_startup_hook(hook)

        assert builder.middlewares[0][2] == 50
        assert builder.startup_hooks[0][1] == 50

    def test_build_creates_fastapi_app(self):
        app = AppBuilder().build()

        assert isinstance(app, FastAPI)
        assert app.title == "App Tracking System API"

    def test_build_with_custom_config(self):
        app = AppBuilder().configure(title="Custom App", version="2.0.0").build()

        assert app.title == "Custom App"
        assert app.version == "2.0.0"

    def test_plugins_configured_during_build(self):
        plugin = RecordingPlugin("p", [])

        AppBuilder().add_plugin(plugin).build()

        assert plugin.configure_called

    def test_exception_handler_registered(self):
        async def handler(request, exc):
            return JSONResponse(status_code=404, content={"missing": True})

        app = AppBuilder().add_exception_handler(404, handler).build()

        with TestClient(app) as client:
            response = client.get("/nowhere")

        assert response.json() == {"missing": True}


class TestAppBuilderMiddleware:
    def test_lower_priority_runs_outermost(self):
        calls: list[str] = []
        builder = AppBuilder()
        builder.add_middleware(TagMiddleware, priority=80, name="inner", calls=calls)
        builder.add_middleware(TagMiddleware, priority=10, name="outer", calls=calls)
        builder.add_middleware(TagMiddleware, priority=50, name="middle", calls=calls)
        app = builder.build()

        @app.get("/ping")
        async def ping():
            return {"pong": True}

        with TestClient(app) as client:
            client.get("/ping")

        assert calls == ["outer", "middle", "inner"]


@pytest.mark.asyncio
class TestAppBuilderHooks:
    async def test_startup_hooks_low_priority_first(self):
        order: list[str] = []

        async def core(app):
            order.append("core")

        async def database(app):
            order.append("database")

        async def user(app):
            order.append("user")

        app = (
            AppBuilder()
            .add_startup_hook(user, priority=50)
            .add_startup_hook(core, priority=10)
            .add_startup_hook(database, priority=20)
            .build()
        )

        async with app.router.lifespan_context(app):
            pass

        assert order == ["core", "database", "user"]

    async def test_shutdown_hooks_high_priority_first(self):
        order: list[str] = []
        core = RecordingPlugin("core", order, priority=10)
        database = RecordingPlugin("database", order, priority=20)

        app = AppBuilder().add_plugin(database).add_plugin(core).build()

        async with app.router.lifespan_context(app):
            assert order == ["core_startup", "database_startup"]

        assert order[2:] == ["database_shutdown", "core_shutdown"]

    async def test_failing_startup_hook_aborts_and_still_shuts_down(self):
        order: list[str] = []

        async def broken(app):
            raise RuntimeError("Startup failed")

        async def never(app):
            order.append("never")

        async def cleanup(app):
            order.append("cleanup")

        app = (
            AppBuilder()
            .add_startup_hook(broken, priority=10)
            .add_startup_hook(never, priority=20)
            .add_shutdown_hook(cleanup)
            .build()
        )

        with pytest.raises(RuntimeError, match="Startup failed"):
            async with app.router.lifespan_context(app):
                pass

        assert order == ["cleanup"]

    async def test_shutdown_errors_isolated(self):
        order: list[str] = []

        async def broken(app):
            raise RuntimeError("boom")

        async def after(app):
            order.append("after")

        app = (
            AppBuilder()
            .add_shutdown_hook(broken, priority=90)
            .add_shutdown_hook(after, priority=10)
            .build()
        )

        async with app.router.lifespan_context(app):
            pass

        assert order == ["after"]


class TestAppBuilderIsolation:
    def test_builders_do_not_share_state(self):
        builder1 = AppBuilder()
        builder2 = AppBuilder()

        builder1.add_plugin(RecordingPlugin("one", []))

        assert len(builder1.plugins) == 1
        assert builder2.plugins == []
