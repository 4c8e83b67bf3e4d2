from __future__ import annotations

from datetime import date
from typing import Any

from clinicpanel.app.domain.recursos import ColumnaDef, FormatoColumna, Registro


def formatear_fecha(valor: Any) -> str:
    """ISO (con o sin hora) -> dd/mm/aaaa; si no se puede interpretar se deja tal cual."""
    texto = "" if valor is None else str(valor)
    if not texto:
        return ""
    try:
        return date.fromisoformat(texto.split("T", 1)[0]).strftime("%d/%m/%Y")
    except ValueError:
        return texto


def formatear_moneda(valor: Any) -> str:
    try:
        return f"${float(valor):.2f}"
    except (TypeError, ValueError):
        return "" if valor is None else str(valor)


def formatear_celda(valor: Any, formato: FormatoColumna = FormatoColumna.TEXTO) -> str:
    if formato == FormatoColumna.FECHA:
        return formatear_fecha(valor)
    if formato == FormatoColumna.MONEDA:
        return formatear_moneda(valor)
    return "" if valor is None else str(valor)


def fila(registro: Registro, columnas: tuple[ColumnaDef, ...]) -> list[str]:
    return [formatear_celda(registro.get(col.campo), col.formato) for col in columnas]
