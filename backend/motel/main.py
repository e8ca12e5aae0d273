"""
Motel Ops 主应用入口
"""
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from motel.bootstrap import Runtime, build_runtime
from motel.config import settings
from motel.exception_handlers import register_exception_handlers
from motel.routers import ops
from motel.security.rbac import Actor

ActorResolver = Callable[[Request], Optional[Actor]]


def _default_runtime() -> Runtime:
    from motel.database import init_db
    init_db()
    return build_runtime(settings)


def create_app(
    runtime_factory: Callable[[], Runtime] = _default_runtime,
    actor_resolver: Optional[ActorResolver] = None,
) -> FastAPI:
    """
    创建应用

    Args:
        runtime_factory: 构建运行时（lifespan 启动时调用）
        actor_resolver: 从请求解析已认证操作者（由认证层提供）
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        runtime = runtime_factory()
        runtime.start()
        app.state.runtime = runtime
        try:
            yield
        finally:
            runtime.stop()

    app = FastAPI(
        title=settings.APP_NAME,
        description="客房与任务运营工作流引擎",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # CORS 配置
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if actor_resolver is not None:
        @app.middleware("http")
        async def attach_actor(request: Request, call_next):
            request.state.actor = actor_resolver(request)
            return await call_next(request)

    register_exception_handlers(app)
    app.include_router(ops.router)

    @app.get("/")
    def root():
        """根路径"""
        return {
            "name": settings.APP_NAME,
            "version": "1.0.0",
            "description": "客房与任务运营工作流引擎",
        }

    @app.get("/health")
    def health(request: Request):
        runtime: Runtime = request.app.state.runtime
        stats = runtime.bus.get_statistics()
        return {
            "status": "ok",
            "queue": runtime.notifications.get_queue_stats(),
            "events": {
                "published": stats.total_published,
                "processed": stats.total_processed,
                "failed": stats.total_failed,
            },
            "workers": runtime.workers.running,
        }

    return app


app = create_app()
