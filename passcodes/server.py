import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request

from . import config
from .api import router as passcode_router
from .logging_config import log, mask_passcodes
from .store import PasscodeStore
from .sweeper import PasscodeSweeper


def create_app(store: Optional[PasscodeStore] = None, *, sweep: Optional[bool] = None) -> FastAPI:
    """Build an app that owns one passcode store and, optionally, its sweeper."""
    store = store if store is not None else PasscodeStore()
    run_sweeper = bool(getattr(config, "SWEEP_ENABLED", True)) if sweep is None else bool(sweep)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = PasscodeSweeper(store) if run_sweeper else None
        app.state.passcode_sweeper = sweeper
        if sweeper is not None:
            sweeper.start()
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.stop()
            app.state.passcode_sweeper = None

    app = FastAPI(title=f"Passcodes {config.VERSION}", lifespan=lifespan)
    app.state.passcode_store = store
    app.state.passcode_sweeper = None

    @app.middleware("http")
    async def http_log_middleware(request: Request, call_next):
        """Log HTTP request latency with passcode values masked."""
        started = time.perf_counter()
        method = str(request.method or "")
        target = mask_passcodes(request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            log.exception("HTTP %s %s -> 500", method, target)
            raise
        dt_ms = (time.perf_counter() - started) * 1000.0
        if bool(getattr(config, "VERBOSE_HTTP_LOG", True)) or dt_ms >= 1000.0:
            log.info("HTTP %s %s -> %s in %.1fms", method, target, response.status_code, dt_ms)
        return response

    app.include_router(passcode_router)
    return app


def run() -> None:
    """Serve a fresh passcode store over HTTP with uvicorn."""
    log_level = "debug" if config.DEBUG else "info"
    access_log = config.DEBUG
    if not config.LOG_ENABLED:
        log_level = "critical"
        access_log = False

    log.info("Starting passcode service %s on %s:%s", config.VERSION, config.HOST, config.PORT)
    uvicorn.run(create_app(), host=config.HOST, port=int(config.PORT), log_level=log_level, access_log=access_log)
