from fastapi import FastAPI

from dealer_finance.entrypoints.http.exception_handlers import register_exception_handlers
from dealer_finance.entrypoints.http.routes.health import router as health_router
from dealer_finance.entrypoints.http.routes.payments import router as payments_router
from dealer_finance.entrypoints.http.routes.purchases import router as purchases_router
from dealer_finance.entrypoints.http.routes.quotations import router as quotations_router


def build_app() -> FastAPI:
    app = FastAPI(
        title="Dealer Finance API",
        description="""
        Financing and purchase ledger of the dealership CRM.

        ## Features
        - Price vehicles into quotations and follow the seller decision
        - Start purchases with a simulated credit bureau check
        - Evaluate financing with a simulated bank
        - Register partial payments against the outstanding balance

        ## Authentication
        Handled upstream. The auth gateway forwards the caller as
        `X-Actor-Id`, `X-Actor-Role` (client | seller | admin),
        `X-Actor-Email` and `X-Actor-Name` headers.

        ## Money
        All monetary values are decimal strings (e.g., "10000.00").

        ## Error Handling
        All errors return structured JSON responses with error codes.
        See the error response schemas in the API documentation.
        """,
        version="0.1.0",
        docs_url="/docs",  # Swagger UI
        redoc_url="/redoc",  # ReDoc alternative
        openapi_url="/openapi.json",  # OpenAPI schema
        contact={
            "name": "Dealer Finance Team",
            "email": "finance-dev@dealer-crm.example",
        },
        license_info={
            "name": "Proprietary",
        },
    )

    # Register global exception handlers
    register_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(quotations_router, prefix="/v1")
    app.include_router(purchases_router, prefix="/v1")
    app.include_router(payments_router, prefix="/v1")

    return app


app = build_app()
