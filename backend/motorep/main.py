import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import models  # noqa: F401
from .config import settings
from .core.errors import NegocioError, negocio_error_handler
from .core.init_db import init_db
from .routers import (
    auth,
    caja,
    clientes,
    cotizaciones,
    creditos,
    dashboard,
    devoluciones,
    empleados,
    inventario,
    productos,
    proveedores,
    ventas,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("%s listo", settings.PROJECT_NAME)
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(NegocioError, negocio_error_handler)

app.include_router(auth.router)
app.include_router(productos.router)
app.include_router(clientes.router)
app.include_router(empleados.router)
app.include_router(proveedores.router)
app.include_router(inventario.router)
app.include_router(ventas.router)
app.include_router(cotizaciones.router)
app.include_router(creditos.router)
app.include_router(devoluciones.router)
app.include_router(caja.router)
app.include_router(dashboard.router)


@app.get("/")
def root():
    return {"message": f"API {settings.PROJECT_NAME} lista"}
