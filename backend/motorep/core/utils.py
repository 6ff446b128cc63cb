import secrets
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..config import settings

try:
    LOCAL_TZ = ZoneInfo(settings.LOCAL_TIMEZONE)
except ZoneInfoNotFoundError:
    # Lima no tiene horario de verano
    LOCAL_TZ = timezone(timedelta(hours=-5))

CENT = Decimal("0.01")


def local_now() -> datetime:
    return datetime.now(tz=LOCAL_TZ)


def local_now_naive() -> datetime:
    return local_now().replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def day_bounds(value: date) -> tuple[datetime, datetime]:
    start = datetime.combine(value, time.min)
    return start, start + timedelta(days=1)


def to_decimal(value: object, default: str = "0") -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(default)


def q2(value: object) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_soles(value: object) -> str:
    return f"S/. {q2(value):,.2f}"


def generar_numero(prefijo: str) -> str:
    """Numero legible y unico: PREFIJO-ddmmaaaa-XXXXXX."""
    return f"{prefijo}-{local_now().strftime('%d%m%Y')}-{secrets.token_hex(3).upper()}"
