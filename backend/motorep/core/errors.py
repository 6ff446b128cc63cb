from fastapi import Request, status
from fastapi.responses import JSONResponse


class NegocioError(ValueError):
    """Regla de negocio violada por la operacion solicitada."""

    status_code = status.HTTP_400_BAD_REQUEST


class NoEncontradoError(NegocioError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictoError(NegocioError):
    """El estado actual del registro impide la operacion (caja cerrada, ya confirmado...)."""

    status_code = status.HTTP_409_CONFLICT


async def negocio_error_handler(request: Request, exc: NegocioError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=exc.status_code)
