"""
Punto de entrada de la aplicación FastAPI.
Configura CORS, handlers de error, y monta los routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from emr_ledger.api.v1.router import api_v1_router
from emr_ledger.config import get_settings
from emr_ledger.core.exceptions import RegistryException
from emr_ledger.database import async_session_factory
from emr_ledger.services.role_service import bootstrap_admin

settings = get_settings()
logger = logging.getLogger(__name__)


# ── Lifecycle ────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Eventos de inicio y cierre de la aplicación."""
    # Startup
    print(f"🚀 {settings.APP_NAME} iniciando en modo {settings.APP_ENV}")
    if settings.ADMIN_PRINCIPAL:
        async with async_session_factory() as db:
            if await bootstrap_admin(db, settings.ADMIN_PRINCIPAL):
                await db.commit()
                print(f"🔑 ADMIN de génesis: {settings.ADMIN_PRINCIPAL}")
    yield
    # Shutdown
    print(f"🛑 {settings.APP_NAME} cerrando...")


# ── App ──────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    description="API del registro de historias clínicas con consentimiento del paciente",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Exception Handlers ──────────────────────────────
@app.exception_handler(RegistryException)
async def registry_exception_handler(request: Request, exc: RegistryException):
    """Errores tipados del registro: detail + code estable."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Captura excepciones no manejadas para evitar exponer detalles internos."""
    logger.exception(f"Error no manejado en {request.method} {request.url.path}")
    if settings.DEBUG:
        # En desarrollo, mostrar detalles
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc), "type": type(exc).__name__},
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Error interno del servidor"},
    )


# ── Routers ──────────────────────────────────────────
app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)


# ── Health Check ─────────────────────────────────────
@app.get("/health", tags=["Health"])
async def health_check():
    """Endpoint de health check para monitoreo."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": "0.1.0",
        "environment": settings.APP_ENV,
    }
