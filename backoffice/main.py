from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from backoffice import models  # noqa: F401  registers every table
from backoffice.config import settings
from backoffice.database import engine, Base
from backoffice.errors import LedgerError
from backoffice.sales.router import router as sales_router
from backoffice.payments.router import router as payment_router
from backoffice.returns.router import router as returns_router
from backoffice.customers.router import router as customers_router
from backoffice.stock.transactions.router import router as stock_router


if settings.LOG_FILE:
    logger.add(settings.LOG_FILE, rotation=settings.LOG_ROTATION, level=settings.LOG_LEVEL)


# Database startup
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")
    Base.metadata.create_all(bind=engine)
    yield
    logger.info("Application shutdown")


# Create app
app = FastAPI(
    title="POS BACK OFFICE",
    description="Sales ledger and inventory reconciliation: sales, payments, returns, cancellations and stock pools.",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # For production, change to specific domains
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # Internal detail stays in the log
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Routers
app.include_router(sales_router, prefix="/sales", tags=["Sales"])
app.include_router(payment_router, prefix="/payments", tags=["Payments"])
app.include_router(returns_router, prefix="/returns", tags=["Returns"])
app.include_router(customers_router, prefix="/customers", tags=["Customers"])
app.include_router(stock_router, prefix="/stock", tags=["Stock"])


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("backoffice.main:app", host=settings.SERVER_HOST, port=settings.SERVER_PORT)
