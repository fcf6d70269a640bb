"""
marketplace-service/main.py - Agro Marketplace Order Service

PURPOSE:
    Backend for a marketplace where farmers order inputs from dealer shops.
    Owns the order lifecycle and the inventory reservation that goes with it,
    plus the catalog, shop and notification surfaces needed around it.

ORDER WORKFLOW:
    1. Farmer places an order against a dealer shop
    2. Every line is validated and its stock reserved with a conditional
       UPDATE; the whole placement commits or rolls back as one
    3. Dealer moves the order placed → assigned → ready → in_transit → delivered;
       an admin may assign it and a delivery agent may move it to
       in_transit / delivered
    4. Farmer (while placed/assigned) or dealer may cancel; stock goes back.
       A cancelled order is final
    5. Each step notifies the other party and publishes an order event

API ENDPOINTS:
    POST   /orders/place                   - Place order (farmer)
    GET    /orders/farmer/my-orders        - Farmer's orders
    PATCH  /orders/farmer/{id}/cancel      - Cancel order (farmer)
    GET    /orders/dealer/my-orders        - Dealer's orders
    PATCH  /orders/dealer/{id}/status      - Update order status (dealer)
    GET    /orders/admin/all               - All orders, optional ?status= (admin)
    PATCH  /orders/admin/{id}/assign       - Assign placed order, optional dealer (admin)
    GET    /orders/delivery/active         - Orders awaiting delivery (delivery)
    PATCH  /orders/delivery/{id}/status    - Mark in_transit / delivered (delivery)
    GET    /orders/{id}                  - Single order, ownership-scoped
    GET    /products/dealer/list           - Dealer's products
    POST   /products/dealer/add            - Add product (dealer, verified shop)
    PUT    /products/dealer/{id}           - Update product (dealer)
    DELETE /products/dealer/{id}           - Delete product (dealer)
    POST   /products/dealer/{id}/image     - Upload product image (dealer)
    GET    /products/farmer/list           - Browse products (farmer, admin)
    GET    /products/{id}                  - Product details
    POST   /shops/register                 - Register shop (dealer)
    GET    /shops/list, /shops/{id}        - Dealer's shops
    GET    /admin/shops                    - All shops (admin)
    PATCH  /admin/shops/{id}/status        - Review shop (admin)
    GET    /notifications                  - Own notifications
    PATCH  /notifications/{id}/read        - Mark notification read
    GET    /health                         - Health check

KAFKA EVENTS (when KAFKA_ENABLED=true):
    PUBLISHED:
        - order.placed, order.status_changed, order.cancelled
        - inventory.depleted

RESPONSES:
    Every body carries "success"; failures carry "message" and use
    400 / 401 / 403 / 404 / 500.

USAGE:
    python services/marketplace-service/main.py
    Access: http://localhost:8000/...
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Add shared library to path for common utilities
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "shared"))

from database import build_database_url, create_db_engine, create_session_factory  # noqa: E402
from kafka_client import BaseKafkaProducer, DisabledEventPublisher, KafkaEventPublisher  # noqa: E402
from logging_config import setup_logging  # noqa: E402

from auth import PrincipalResolver  # noqa: E402
from config import Settings  # noqa: E402
from errors import MarketplaceError  # noqa: E402
from keepalive_job import KeepAliveJob  # noqa: E402
from models import Base  # noqa: E402
from schemas import HealthResponse  # noqa: E402
from upload_service import UploadService  # noqa: E402

import notification_routes  # noqa: E402
import order_routes  # noqa: E402
import product_routes  # noqa: E402
import shop_routes  # noqa: E402

SERVICE_NAME = "marketplace-service"
SERVICE_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def init_db(engine) -> None:
    """Initialize database tables."""
    logger.info("Initializing database...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized")


def build_event_publisher(settings: Settings):
    """Kafka publisher when enabled, otherwise one that drops events."""
    if not settings.kafka_enabled:
        logger.info("Kafka publishing disabled")
        return DisabledEventPublisher()

    from topic_initializer import create_topics

    create_topics(settings.kafka_bootstrap_servers)
    producer = BaseKafkaProducer(settings.kafka_bootstrap_servers, client_id="marketplace-producer")
    logger.info("Kafka producer initialized")
    return KafkaEventPublisher(producer)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle."""
    settings: Settings = app.state.settings

    logger.info("Starting Marketplace Service...")

    database_url = build_database_url(
        settings.postgres_user,
        settings.postgres_password,
        settings.postgres_host,
        settings.postgres_port,
        settings.postgres_db,
        override=settings.database_url,
    )
    engine = create_db_engine(database_url)
    try:
        init_db(engine)
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
    app.state.session_factory = create_session_factory(engine)
    app.state.principal_resolver = PrincipalResolver(settings.jwt_secret)

    if app.state.upload_service is None:
        app.state.upload_service = UploadService(
            settings.imagekit_public_key,
            settings.imagekit_private_key,
            url_endpoint=settings.imagekit_url_endpoint,
        )

    if app.state.event_publisher is None:
        try:
            app.state.event_publisher = build_event_publisher(settings)
        except Exception as e:
            logger.error(f"Failed to initialize Kafka producer: {e}")
            raise

    if settings.seed_demo_data:
        from seed_data import seed_demo_data

        db = app.state.session_factory()
        try:
            seed_demo_data(db, settings.jwt_secret, settings.jwt_expiry_days)
        except Exception as e:
            logger.error(f"Failed to seed demo data: {e}")
        finally:
            db.close()

    keepalive_job: Optional[KeepAliveJob] = None
    if settings.keepalive_url:
        keepalive_job = KeepAliveJob(settings.keepalive_url, settings.keepalive_interval_seconds)
        keepalive_job.start()

    yield

    logger.info("Shutting down Marketplace Service...")
    if keepalive_job:
        keepalive_job.stop()
    app.state.event_publisher.close()
    engine.dispose()


def create_app(settings: Optional[Settings] = None, event_publisher=None, upload_service=None) -> FastAPI:
    """Build the app; collaborators not passed in are constructed at startup."""
    settings = settings or Settings()

    app = FastAPI(title="Agro Marketplace Service", version=SERVICE_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.event_publisher = event_publisher
    app.state.upload_service = upload_service

    app.include_router(order_routes.router)
    app.include_router(product_routes.router)
    app.include_router(shop_routes.router)
    app.include_router(shop_routes.admin_router)
    app.include_router(notification_routes.router)

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
        """Map MarketplaceError subclasses to their HTTP responses."""
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"] if part != "body")
            messages.append(f"{location}: {error['msg']}" if location else error["msg"])
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "; ".join(messages)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Internal server error"},
        )

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)

    return app


settings = Settings()
setup_logging(SERVICE_NAME, level=settings.log_level, tz_name=settings.log_timezone)

app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.marketplace_service_port)
