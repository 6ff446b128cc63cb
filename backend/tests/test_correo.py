from datetime import date
from decimal import Decimal

import pytest

from motorep.config import settings
from motorep.services import correo
from motorep.services.cuadre import RetiroCuadre, VentaCuadre, calcular_cuadre


class FakeSMTP:
    enviados = []

    def __init__(self, host, port):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        self.user = user

    def send_message(self, message):
        FakeSMTP.enviados.append(message)


@pytest.fixture()
def smtp_configurado(monkeypatch):
    FakeSMTP.enviados = []
    monkeypatch.setattr(settings, "SMTP_USER", "caja@motorep.pe")
    monkeypatch.setattr(settings, "SMTP_PASSWORD", "clave")
    monkeypatch.setattr(correo.smtplib, "SMTP", FakeSMTP)


@pytest.fixture()
def resumen():
    cuadre = calcular_cuadre(
        [VentaCuadre("V-1", Decimal("80"), ganancia_total_venta=Decimal("25"))],
        [],
        [RetiroCuadre(Decimal("10"), "efectivo")],
        Decimal("50"),
    )
    data = cuadre.as_dict()
    data["estado"] = "cerrada"
    return data


def test_render_resumen_caja(resumen):
    html = correo.render_resumen_caja(date(2024, 5, 3), resumen)
    assert "03/05/2024" in html
    assert "S/. 120.00" in html
    assert "V-1" in html


def test_envia_resumen_con_html_y_texto(smtp_configurado, resumen):
    error = correo.enviar_resumen_caja(date(2024, 5, 3), resumen, "dueno@motorep.pe")
    assert error is None
    assert len(FakeSMTP.enviados) == 1
    mensaje = FakeSMTP.enviados[0]
    assert mensaje["To"] == "dueno@motorep.pe"
    assert mensaje["Subject"] == "Resumen de caja 03/05/2024"
    assert mensaje.get_body(preferencelist=("plain",)).get_content().startswith("Resumen de caja del 03/05/2024")


def test_fallo_smtp_se_reporta(monkeypatch, smtp_configurado, resumen):
    class SMTPCaido(FakeSMTP):
        def starttls(self):
            raise OSError("sin red")

    monkeypatch.setattr(correo.smtplib, "SMTP", SMTPCaido)
    error = correo.enviar_resumen_caja(date(2024, 5, 3), resumen)
    assert error == "Error SMTP: OSError"


def test_sin_destinatario_no_llama_a_smtp(monkeypatch, smtp_configurado, resumen):
    monkeypatch.setattr(settings, "CAJA_RESUMEN_EMAIL", "")
    error = correo.enviar_resumen_caja(date(2024, 5, 3), resumen)
    assert error == "No hay destinatarios"
    assert FakeSMTP.enviados == []
