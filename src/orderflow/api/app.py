"""FastAPI application factory for the orderflow HTTP surface."""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from orderflow.api.cart_routes import cart_router
from orderflow.api.handlers import register_exception_handlers
from orderflow.api.order_routes import order_router
from orderflow.api.payment_routes import payment_router
from orderflow.api.shipping_routes import shipping_router
from orderflow.domain import orderflow
from orderflow.utils.logging import add_context, clear_context


def create_app() -> FastAPI:
    app = FastAPI(
        title="Orderflow API",
        description="Checkout, simulated payments and simulated shipping",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the Protean domain context and bind a request id for logging."""
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        clear_context()
        add_context(request_id=request_id, method=request.method, path=request.url.path)
        with orderflow.domain_context():
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(payment_router)
    app.include_router(shipping_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": orderflow.name})

    return app
