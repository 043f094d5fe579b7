"""
FastAPI Application Entry Point

Order Desk - menu, customer orders and live order status for a small
food vendor.

Endpoints:
    - GET /api/menu: Categories with their items
    - POST /api/menu: Create a menu item
    - PUT /api/menu/{id}: Partial menu item update
    - PATCH /api/menu/{id}/availability: Switch an item on or off
    - GET /api/orders: Active (not completed) orders, newest first
    - POST /api/orders: Place an order
    - PATCH /api/orders/{id}/status: Move an order through its workflow
    - WS /ws: Live order:new / order:update events for admin displays
    - GET /health: System health check

Version: 1.0.0
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.config import Settings, get_settings, setup_logging
from orderdesk.database import Database, get_db
from orderdesk.errors import OrderDeskError
from orderdesk.schemas import (
    AvailabilityUpdate,
    CategoryCreate,
    CategoryCreateResponse,
    CategoryRead,
    ErrorResponse,
    HealthResponse,
    ItemCreateResponse,
    ItemResponse,
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
    MenuResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderListResponse,
    OrderRead,
    StatusUpdate,
    StatusUpdateResponse,
)
from orderdesk.services import CatalogStore, LineRequest, OrderLedger, StatusMachine, major_to_minor
from orderdesk.services.notifications import Broadcaster, Subscription, create_broadcaster
from orderdesk.services.seed import seed_catalog

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database
    broadcaster: Broadcaster = app.state.broadcaster

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Strict status transitions: {settings.strict_status_transitions}")
    logger.info("=" * 60)

    await database.init()
    logger.info("✅ Database initialized")

    if settings.seed_catalog:
        async with database.session_maker() as session:
            if await seed_catalog(session):
                logger.info("✅ Default menu seeded")

    await broadcaster.start()
    logger.info(f"✅ Broadcaster: {broadcaster.provider_name}")

    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await broadcaster.close()
    await database.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_catalog(db: AsyncSession = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)


def get_ledger(request: Request, db: AsyncSession = Depends(get_db)) -> OrderLedger:
    return OrderLedger(
        db,
        broadcaster=request.app.state.broadcaster,
        status_machine=request.app.state.status_machine,
    )


router = APIRouter()


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@router.get("/", tags=["Root"])
async def root(request: Request) -> dict[str, str]:
    """API root with navigation links."""
    settings: Settings = request.app.state.settings
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "menu": "/api/menu",
        "orders": "/api/orders",
        "events": "/ws",
        "health": "/health",
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> HealthResponse:
    """Verify the store and the broadcaster are operational."""

    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    broadcaster_status = "healthy" if await broadcaster.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, broadcaster_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        broadcaster=f"{broadcaster.provider_name}: {broadcaster_status}",
        observers=broadcaster.observer_count,
        timestamp=datetime.now(),
    )


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@router.get(
    "/api/menu",
    response_model=MenuResponse,
    tags=["Menu"],
    summary="Menu",
)
async def get_menu(
    request: Request,
    catalog: CatalogStore = Depends(get_catalog),
) -> MenuResponse:
    """Categories by display order, each with its items."""
    categories = await catalog.list_categories_with_items()
    return MenuResponse(
        currency=request.app.state.settings.currency_code,
        categories=[CategoryRead.model_validate(c) for c in categories],
    )


@router.post(
    "/api/menu/categories",
    response_model=CategoryCreateResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def create_category(
    payload: CategoryCreate,
    catalog: CatalogStore = Depends(get_catalog),
) -> CategoryCreateResponse:
    category = await catalog.create_category(payload.name, payload.sort_order)
    return CategoryCreateResponse(
        id=category.id,
        category=CategoryRead(id=category.id, name=category.name, sort_order=category.sort_order),
    )


@router.post(
    "/api/menu",
    response_model=ItemCreateResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Menu"],
    summary="Create Menu Item",
)
async def create_menu_item(
    payload: MenuItemCreate,
    catalog: CatalogStore = Depends(get_catalog),
) -> ItemCreateResponse:
    """Add an item. The price is given in major units and stored in cents."""
    item = await catalog.create_item(
        category_id=payload.category_id,
        name=payload.name,
        description=payload.description,
        price_cents=major_to_minor(payload.price),
        available=payload.available,
    )
    return ItemCreateResponse(id=item.id, item=MenuItemRead.model_validate(item))


@router.put(
    "/api/menu/{item_id}",
    response_model=ItemResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def update_menu_item(
    item_id: int,
    payload: MenuItemUpdate,
    catalog: CatalogStore = Depends(get_catalog),
) -> ItemResponse:
    """Partial update. Existing orders keep the price they were placed at."""
    item = await catalog.update_item(
        item_id,
        name=payload.name,
        description=payload.description,
        price_cents=major_to_minor(payload.price) if payload.price is not None else None,
    )
    return ItemResponse(item=MenuItemRead.model_validate(item))


@router.patch(
    "/api/menu/{item_id}/availability",
    response_model=ItemResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def set_item_availability(
    item_id: int,
    payload: AvailabilityUpdate,
    catalog: CatalogStore = Depends(get_catalog),
) -> ItemResponse:
    item = await catalog.set_availability(item_id, payload.available)
    return ItemResponse(item=MenuItemRead.model_validate(item))


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@router.get(
    "/api/orders",
    response_model=OrderListResponse,
    tags=["Orders"],
    summary="Active Orders",
)
async def list_active_orders(
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderListResponse:
    """Every order not yet COMPLETED, newest first."""
    orders = await ledger.list_active()
    return OrderListResponse(total=len(orders), orders=orders)


@router.get(
    "/api/orders/{order_id}",
    response_model=OrderRead,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: int,
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderRead:
    return await ledger.get_order(order_id)


@router.post(
    "/api/orders",
    response_model=OrderCreateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    payload: OrderCreate,
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderCreateResponse:
    """
    Place an order from item ids and quantities.

    Prices come from the current menu; the whole order is rejected if
    any item is missing or unavailable.
    """
    logger.info(f"Creating order for: {payload.customer_name}")

    order = await ledger.place_order(
        payload.customer_name,
        payload.phone,
        [LineRequest(item_id=line.item_id, qty=line.qty) for line in payload.items],
    )
    return OrderCreateResponse(order_id=order.id, order=order)


@router.patch(
    "/api/orders/{order_id}/status",
    response_model=StatusUpdateResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    ledger: OrderLedger = Depends(get_ledger),
) -> StatusUpdateResponse:
    order = await ledger.update_status(order_id, payload.status)
    return StatusUpdateResponse(order=order)


# =============================================================================
# LIVE UPDATES
# =============================================================================

async def _forward_events(websocket: WebSocket, subscription: Subscription) -> None:
    """Drain one observer's queue onto its socket until the socket goes away."""
    try:
        while True:
            message = await subscription.get()
            await websocket.send_json(message)
    except (WebSocketDisconnect, RuntimeError, OSError) as e:
        # Sending on a socket the client already dropped
        logger.debug(f"Observer {subscription.id} send loop ended: {e}")


@router.websocket("/ws")
async def order_events(websocket: WebSocket) -> None:
    """
    Stream order:new and order:update events.

    There is no backlog: a display that reconnects should reload
    GET /api/orders to catch up on anything it missed.
    """
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    # Register before accepting so no event slips between handshake and subscribe
    subscription = broadcaster.subscribe()
    sender: Optional[asyncio.Task] = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(_forward_events(websocket, subscription))
        while True:
            # Inbound messages are ignored; receiving is how we notice a disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Observer {subscription.id} closed the connection")
    finally:
        if sender is not None:
            sender.cancel()
            with suppress(asyncio.CancelledError):
                await sender
        broadcaster.unsubscribe(subscription)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

async def order_desk_error_handler(request: Request, exc: OrderDeskError) -> JSONResponse:
    """Expected domain failures, surfaced with their own status code."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies, reported field by field."""
    fields: dict[str, Any] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields[".".join(location) or "body"] = error.get("msg", "invalid")

    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Validation Error",
            "message": f"Invalid or missing fields: {', '.join(sorted(fields))}",
            "detail": fields,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")
    debug = request.app.state.settings.debug

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if debug else "An unexpected error occurred",
        },
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    broadcaster: Optional[Broadcaster] = None,
) -> FastAPI:
    """
    Build the application.

    Every collaborator can be injected, which is how tests get an
    isolated store; anything not given is built from ``settings``.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Menu, customer orders and live order status for a small food vendor.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.database = database or Database(settings.database_url, echo=settings.database_echo)
    app.state.broadcaster = broadcaster or create_broadcaster(settings)
    app.state.status_machine = StatusMachine(strict=settings.strict_status_transitions)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(OrderDeskError, order_desk_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(router)
    return app


# Initialize logging and the default application
setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("orderdesk.main:app", host=settings.api_host, port=settings.api_port)
