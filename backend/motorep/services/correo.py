import logging
import smtplib
from datetime import date
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import settings
from ..core.utils import format_soles

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
_env.filters["soles"] = format_soles


def render_resumen_caja(fecha: date, resumen: dict) -> str:
    return _env.get_template("resumen_caja.html").render(
        negocio=settings.PROJECT_NAME,
        fecha=fecha.strftime("%d/%m/%Y"),
        estado=resumen.get("estado", "abierta"),
        cuadre=resumen,
    )


def texto_resumen_caja(fecha: date, resumen: dict) -> str:
    lineas = [
        f"Resumen de caja del {fecha:%d/%m/%Y}",
        f"Dinero inicial: {format_soles(resumen['dinero_inicial'])}",
        f"Ventas ({resumen['cantidad_ventas']}): {format_soles(resumen['total_ventas'])}",
        f"Devoluciones: {format_soles(resumen['devoluciones']['total_devuelto'])}",
        f"Total neto: {format_soles(resumen['total'])}",
        f"Retiros: {format_soles(resumen['total_retiros'])}",
        f"Efectivo en caja: {format_soles(resumen['efectivo_fisico'])}",
        f"Ganancia real: {format_soles(resumen['ganancia_real'])}",
    ]
    return "\n".join(lineas)


def send_email(
    subject: str,
    html_body: str,
    recipients: list[str],
    text_body: Optional[str] = None,
) -> Optional[str]:
    """Envia el correo; devuelve None si salio bien o el motivo del fallo."""
    recipients = [r.strip() for r in recipients if r and r.strip()]
    if not recipients:
        return "No hay destinatarios"
    if not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        return "SMTP sin configurar (SMTP_USER / SMTP_PASSWORD)"

    message = EmailMessage()
    message["Subject"] = subject
    if settings.SMTP_SENDER_NAME:
        message["From"] = f"{settings.SMTP_SENDER_NAME} <{settings.SMTP_USER}>"
    else:
        message["From"] = settings.SMTP_USER
    message["To"] = ", ".join(recipients)
    message.set_content(text_body or "Se requiere un cliente de correo compatible con HTML.")
    message.add_alternative(html_body, subtype="html")

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as smtp:
            smtp.starttls()
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("No se pudo enviar el correo '%s'", subject, exc_info=True)
        return f"Error SMTP: {exc.__class__.__name__}"
    logger.info("Correo '%s' enviado a %s", subject, ", ".join(recipients))
    return None


def enviar_resumen_caja(fecha: date, resumen: dict, destinatario: Optional[str] = None) -> Optional[str]:
    destino = destinatario or settings.CAJA_RESUMEN_EMAIL
    return send_email(
        f"Resumen de caja {fecha:%d/%m/%Y}",
        render_resumen_caja(fecha, resumen),
        [destino],
        text_body=texto_resumen_caja(fecha, resumen),
    )
