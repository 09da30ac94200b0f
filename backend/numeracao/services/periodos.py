"""
Cálculo do rótulo de período

Função pura: mesmo instante + mesmo formato = mesmo rótulo.
O relógio é sempre injetado por quem chama (testável).
"""
from datetime import datetime, timezone
from typing import Callable, Union
from zoneinfo import ZoneInfo

from numeracao.models.configuracao import PeriodFormat

Clock = Callable[[], datetime]

# Tamanho do rótulo por formato (usado também no parse do número)
PERIOD_LENGTHS = {
    PeriodFormat.YYMM: 4,
    PeriodFormat.YYYYMM: 6,
    PeriodFormat.YYWW: 4,
    PeriodFormat.YYYYWW: 6,
}


def system_clock() -> datetime:
    """Relógio padrão (UTC)"""
    return datetime.now(timezone.utc)


def _to_zone(moment: datetime, tz: Union[str, ZoneInfo, None]) -> datetime:
    if tz is None:
        return moment
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    if moment.tzinfo is None:
        # Instante sem timezone é tratado como UTC
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(zone)


def compute_period_label(
    moment: datetime,
    period_format: Union[PeriodFormat, str],
    tz: Union[str, ZoneInfo, None] = "UTC"
) -> str:
    """
    Gera o rótulo do período.

    Args:
        moment: Instante de referência
        period_format: Formato configurado
        tz: Timezone em que o calendário é avaliado

    Returns:
        Rótulo (ex: "0125" para janeiro/2025 em YYMM)

    Usage:
        compute_period_label(datetime(2025, 1, 15), PeriodFormat.YYMM)    # "0125"
        compute_period_label(datetime(2025, 1, 15), PeriodFormat.YYYYMM)  # "012025"
        compute_period_label(datetime(2025, 1, 15), PeriodFormat.YYWW)    # "0325"

    Semanas seguem a ISO-8601 junto com o ano ISO: 29/12/2025 é a semana 01 de 2026.
    """
    fmt = PeriodFormat(period_format)
    local = _to_zone(moment, tz)

    if fmt in (PeriodFormat.YYMM, PeriodFormat.YYYYMM):
        year, unit = local.year, local.month
    else:
        iso = local.isocalendar()
        year, unit = iso[0], iso[1]

    if fmt in (PeriodFormat.YYMM, PeriodFormat.YYWW):
        return f"{unit:02d}{year % 100:02d}"
    return f"{unit:02d}{year:04d}"
