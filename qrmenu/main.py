"""
FastAPI Application Entry Point

QR Menu Ordering - owner dashboard API, public table menus and the realtime
order feed. Runs with in-process services in development and with Redis and
SendGrid in staging/production.

Endpoints:
    - /api/auth/*: Sign-up, confirmation, sign-in, sign-out
    - /api/profile, /api/categories, /api/products, /api/tables: Owner data
    - /api/orders: Owner orders and status changes
    - /api/dashboard/analytics: Dashboard aggregates (premium)
    - /api/menu/{token}: Public menu and order submission
    - /ws/orders: Realtime order feed for the dashboard
    - /health: System health check

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import (
    Depends,
    FastAPI,
    File,
    Query,
    Request,
    Response,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi.staticfiles import StaticFiles
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.config import get_settings, setup_logging
from qrmenu.core.exceptions import AuthenticationError, QRMenuError
from qrmenu.database import async_session_maker, engine, get_db, init_db
from qrmenu.models import Owner, SubscriptionPlan
from qrmenu.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    DashboardStats,
    ErrorResponse,
    HealthResponse,
    MenuResponse,
    MeResponse,
    OrderCreateResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusResponse,
    OrderStatusUpdate,
    OrderSubmitRequest,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    ProfileResponse,
    ProfileUpdate,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
    TableGenerateRequest,
    TableListResponse,
    TableResponse,
    ThemeUpdate,
    TokenResponse,
)
from qrmenu.services.auth import AuthService
from qrmenu.services.catalog import CatalogStore
from qrmenu.services.dashboard import DashboardView, summarize, visible_orders
from qrmenu.services.menu import resolve_menu, selection_from_lines, submit_order
from qrmenu.services.notifications import get_notification_service
from qrmenu.services.ordering import OrderWorkflow, next_statuses
from qrmenu.services.profile import ProfileService, has_plan, require_plan
from qrmenu.services.realtime import get_order_feed
from qrmenu.services.storage import get_storage_service, object_path, optimize_image
from qrmenu.services.tables import TableRegistry, menu_url, qr_png

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    # Initialize database
    await init_db()
    logger.info("✅ Database initialized")

    # Log service configuration
    logger.info(f"✅ Order Feed: {get_order_feed().provider_name}")
    logger.info(f"✅ Notification Service: {get_notification_service().provider_name}")
    logger.info(f"✅ Storage Service: {get_storage_service().provider_name}")

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await get_order_feed().close()
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "QR code table ordering: owners manage menus and tables, customers "
        "order from the menu behind a table's QR code, and new orders reach "
        "the owner's dashboard in real time."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded product images and logos
app.mount(
    "/uploads",
    StaticFiles(directory=str(get_storage_service().root)),
    name="uploads",
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_owner(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Owner:
    """Owner from the `Authorization: Bearer` header or the session cookie."""
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_COOKIE)
    return await AuthService(db).current_owner(token)


def table_response(table) -> TableResponse:
    return TableResponse(
        id=table.id,
        number=table.number,
        qr_token=table.qr_token,
        menu_url=menu_url(table),
    )


async def read_image(file: UploadFile) -> tuple[bytes, str]:
    """Read an upload and return the optimized image with its content type."""
    content_type = file.content_type or ""
    data = await file.read()
    return optimize_image(data, content_type), content_type


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍕 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify all system components are operational."""

    # Check database
    db_status = "healthy"
    try:
        await db.execute(select(1))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    feed = get_order_feed()
    realtime_status = "healthy" if await feed.health_check() else "unhealthy"

    storage_status = "healthy" if await get_storage_service().health_check() else "unhealthy"
    email_status = "healthy" if await get_notification_service().health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, realtime_status, storage_status, email_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        realtime=f"{realtime_status} ({feed.provider_name})",
        storage=storage_status,
        email=email_status,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post(
    "/api/auth/sign-up",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def sign_up(
    data: SignUpRequest,
    db: AsyncSession = Depends(get_db),
) -> SignUpResponse:
    """Register a restaurant owner."""
    result = await AuthService(db).sign_up(
        email=data.email,
        password=data.password,
        restaurant_name=data.restaurant_name,
        subscription_plan=data.subscription_plan,
    )
    if result.status == "confirmed":
        message = "Account created. You can sign in now."
    else:
        message = "Check your email to confirm your account."
    return SignUpResponse(owner_id=result.owner.id, status=result.status, message=message)


@app.get("/api/auth/confirm", tags=["Auth"])
async def confirm_email(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Target of the link in the sign-up confirmation email."""
    owner = await AuthService(db).confirm(token)
    return {"success": True, "owner_id": owner.id, "message": "Email confirmed. You can sign in now."}


@app.post(
    "/api/auth/sign-in",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def sign_in(
    data: SignInRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """Exchange credentials for an access token (also set as a cookie)."""
    result = await AuthService(db).sign_in(data.email, data.password)
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=result.access_token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        max_age=settings.access_token_expire_minutes * 60,
    )
    return TokenResponse(access_token=result.access_token, owner_id=result.owner.id)


@app.post("/api/auth/sign-out", tags=["Auth"])
async def sign_out(response: Response) -> dict[str, bool]:
    """Clear the session cookie. Bearer tokens simply expire."""
    response.delete_cookie(key=ACCESS_COOKIE, httponly=True, samesite="lax")
    return {"success": True}


@app.get("/api/me", response_model=MeResponse, tags=["Auth"])
async def me(
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> MeResponse:
    profile = await ProfileService(db, owner.id).ensure_profile(owner)
    return MeResponse(
        owner_id=owner.id,
        email=owner.email,
        profile=ProfileResponse.model_validate(profile),
    )


# =============================================================================
# PROFILE ENDPOINTS
# =============================================================================

@app.get("/api/profile", response_model=ProfileResponse, tags=["Profile"])
async def get_profile(
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await ProfileService(db, owner.id).get_profile()
    return ProfileResponse.model_validate(profile)


@app.patch("/api/profile", response_model=ProfileResponse, tags=["Profile"])
async def update_profile(
    data: ProfileUpdate,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await ProfileService(db, owner.id).update_profile(
        restaurant_name=data.restaurant_name,
        restaurant_description=data.restaurant_description,
    )
    return ProfileResponse.model_validate(profile)


@app.put(
    "/api/profile/theme",
    response_model=ProfileResponse,
    responses={403: {"model": ErrorResponse}},
    tags=["Profile"],
    summary="Set Menu Theme (premium)",
)
async def set_theme(
    data: ThemeUpdate,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await ProfileService(db, owner.id).set_theme(data.menu_theme)
    return ProfileResponse.model_validate(profile)


@app.post("/api/profile/logo", response_model=ProfileResponse, tags=["Profile"])
async def upload_logo(
    file: UploadFile = File(...),
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Upload the restaurant logo shown on the public menu."""
    profiles = ProfileService(db, owner.id)
    await profiles.get_profile()

    data, content_type = await read_image(file)
    url = await get_storage_service().upload(
        object_path(owner.id, "logo", content_type), data, content_type
    )
    profile = await profiles.set_logo(url)
    return ProfileResponse.model_validate(profile)


# =============================================================================
# CATALOG ENDPOINTS
# =============================================================================

@app.get("/api/categories", response_model=list[CategoryResponse], tags=["Catalog"])
async def list_categories(
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> list[CategoryResponse]:
    categories = await CatalogStore(db, owner.id).list_categories()
    return [CategoryResponse.model_validate(c) for c in categories]


@app.post(
    "/api/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Catalog"],
)
async def create_category(
    data: CategoryCreate,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    category = await CatalogStore(db, owner.id).add_category(data.name)
    return CategoryResponse.model_validate(category)


@app.patch("/api/categories/{category_id}", response_model=CategoryResponse, tags=["Catalog"])
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    category = await CatalogStore(db, owner.id).update_category(
        category_id, name=data.name, sort_order=data.sort_order
    )
    return CategoryResponse.model_validate(category)


@app.delete(
    "/api/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Catalog"],
)
async def delete_category(
    category_id: str,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await CatalogStore(db, owner.id).delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/api/products", response_model=list[ProductResponse], tags=["Catalog"])
async def list_products(
    available_only: bool = Query(False),
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> list[ProductResponse]:
    products = await CatalogStore(db, owner.id).list_products(available_only=available_only)
    return [ProductResponse.model_validate(p) for p in products]


@app.post(
    "/api/products",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Catalog"],
)
async def create_product(
    data: ProductCreate,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    product = await CatalogStore(db, owner.id).add_product(
        name=data.name,
        price=data.price,
        description=data.description,
        category_id=data.category_id,
        available=data.available,
    )
    return ProductResponse.model_validate(product)


@app.patch("/api/products/{product_id}", response_model=ProductResponse, tags=["Catalog"])
async def update_product(
    product_id: str,
    data: ProductUpdate,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    product = await CatalogStore(db, owner.id).update_product(
        product_id, data.model_dump(exclude_unset=True)
    )
    return ProductResponse.model_validate(product)


@app.delete(
    "/api/products/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Catalog"],
)
async def delete_product(
    product_id: str,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await CatalogStore(db, owner.id).delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/api/products/{product_id}/image", response_model=ProductResponse, tags=["Catalog"])
async def upload_product_image(
    product_id: str,
    file: UploadFile = File(...),
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    catalog = CatalogStore(db, owner.id)
    await catalog.get_product(product_id)

    data, content_type = await read_image(file)
    url = await get_storage_service().upload(
        object_path(owner.id, "products", content_type), data, content_type
    )
    product = await catalog.set_product_image(product_id, url)
    return ProductResponse.model_validate(product)


# =============================================================================
# TABLE ENDPOINTS
# =============================================================================

@app.get("/api/tables", response_model=TableListResponse, tags=["Tables"])
async def list_tables(
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> TableListResponse:
    tables = await TableRegistry(db, owner.id).list_tables()
    return TableListResponse(total=len(tables), tables=[table_response(t) for t in tables])


@app.post(
    "/api/tables/generate",
    response_model=TableListResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    tags=["Tables"],
)
async def generate_tables(
    data: TableGenerateRequest,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> TableListResponse:
    """Create `count` tables numbered after the highest existing one."""
    tables = await TableRegistry(db, owner.id).generate(data.count)
    return TableListResponse(total=len(tables), tables=[table_response(t) for t in tables])


@app.delete(
    "/api/tables/{table_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Tables"],
)
async def delete_table(
    table_id: str,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await TableRegistry(db, owner.id).delete(table_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/api/tables/{table_id}/qr.png", tags=["Tables"])
async def table_qr_code(
    table_id: str,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> Response:
    table = await TableRegistry(db, owner.id).get(table_id)
    return Response(
        content=qr_png(table),
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="table-{table.number}.png"'},
    )


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.get(
    "/api/orders",
    response_model=OrderListResponse,
    tags=["Orders"],
    summary="List Recent Orders",
)
async def list_orders(
    hide_finished: bool = Query(False, description="Hide completed and cancelled orders"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """The owner's most recent orders, newest first."""
    orders = await OrderWorkflow(db).recent_orders(owner.id, limit)
    shown = visible_orders(orders, hide_finished)
    return OrderListResponse(
        total=len(shown),
        orders=[OrderResponse.model_validate(o) for o in shown],
    )


@app.get("/api/orders/{order_id}", response_model=OrderResponse, tags=["Orders"])
async def get_order(
    order_id: str,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await OrderWorkflow(db).get_order(owner.id, order_id)
    return OrderResponse.model_validate(order)


@app.patch(
    "/api/orders/{order_id}/status",
    response_model=OrderStatusResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> OrderStatusResponse:
    """Move an order along pending → confirmed → preparing → ready → completed."""
    order = await OrderWorkflow(db).transition(owner.id, order_id, data.status)
    return OrderStatusResponse(
        order_id=order.id,
        status=order.status,
        next_statuses=next_statuses(order.status),
    )


# =============================================================================
# DASHBOARD ENDPOINTS
# =============================================================================

@app.get(
    "/api/dashboard/analytics",
    response_model=DashboardStats,
    responses={403: {"model": ErrorResponse}},
    tags=["Dashboard"],
    summary="Dashboard Aggregates (premium)",
)
async def dashboard_analytics(
    owner: Owner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> DashboardStats:
    """Today's revenue, average order value and per-status counts."""
    profile = await ProfileService(db, owner.id).get_profile()
    require_plan(profile, SubscriptionPlan.PREMIUM, "Analytics")

    orders = await OrderWorkflow(db).recent_orders(owner.id)
    return summarize(orders)


# =============================================================================
# PUBLIC MENU ENDPOINTS
# =============================================================================

@app.get(
    "/api/menu/{token}",
    response_model=MenuResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Public Menu"],
)
async def public_menu(
    token: str,
    db: AsyncSession = Depends(get_db),
) -> MenuResponse:
    """Menu behind a table's QR code. No authentication."""
    menu = await resolve_menu(db, token)
    return menu.to_response()


@app.post(
    "/api/menu/{token}/orders",
    response_model=OrderCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Public Menu"],
)
async def place_order(
    token: str,
    data: OrderSubmitRequest,
    db: AsyncSession = Depends(get_db),
) -> OrderCreateResponse:
    """Submit a customer's cart from the table's menu."""
    order = await submit_order(
        db,
        token,
        selection_from_lines(data.items),
        payment_method=data.payment_method,
        customer_note=data.customer_note,
    )
    return OrderCreateResponse(
        success=True,
        message="Order placed successfully!",
        order_id=order.id,
        table_number=order.table_number,
        total=order.total,
        status=order.status,
    )


# =============================================================================
# REALTIME ORDER FEED
# =============================================================================

@app.websocket("/ws/orders")
async def orders_feed(websocket: WebSocket, token: Optional[str] = Query(None)):
    """
    Push the owner's new orders to a dashboard.

    On connect the client gets a `snapshot` of recent orders; after that one
    `order_created` message per new order, with a notification naming the
    table. Premium owners also get the dashboard `stats` in both messages.
    The client may send "ping" to get "pong".
    """
    token = token or websocket.cookies.get(ACCESS_COOKIE)
    async with async_session_maker() as db:
        try:
            owner = await AuthService(db).current_owner(token)
        except AuthenticationError:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        profile = await ProfileService(db, owner.id).find_profile()
    with_stats = profile is not None and has_plan(profile, SubscriptionPlan.PREMIUM)

    await websocket.accept()
    view = DashboardView(owner.id)
    snapshot_sent = asyncio.Event()

    def stats() -> dict[str, Any]:
        return {"stats": view.stats().model_dump(mode="json")} if with_stats else {}

    async def forward(event) -> None:
        await snapshot_sent.wait()
        if not subscription.active:
            return
        notification = view.on_order_created(event)
        if notification is None:
            return
        view.drain_notifications()
        await websocket.send_json({
            "type": "order_created",
            "order": event.order.model_dump(mode="json"),
            "notification": notification.message,
            **stats(),
        })

    # Subscribe before loading: an order committed in between is either in
    # the snapshot or delivered afterwards (duplicates are dropped by the view)
    feed = get_order_feed()
    subscription = await feed.subscribe(owner.id, forward)
    try:
        async with async_session_maker() as db:
            view.load(await OrderWorkflow(db).recent_orders(owner.id))
        await websocket.send_json({
            "type": "snapshot",
            "orders": [o.model_dump(mode="json") for o in view.orders],
            **stats(),
        })
        snapshot_sent.set()

        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info(f"Dashboard of {owner.id} disconnected")
    finally:
        await feed.unsubscribe(subscription)
        snapshot_sent.set()


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(QRMenuError)
async def application_error_handler(request: Request, exc: QRMenuError) -> JSONResponse:
    """Render expected errors as ErrorResponse with their own status code."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, code=exc.code, detail=exc.detail).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error="Validation failed", code="validation_error", detail=problems).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "code": "internal_error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )
