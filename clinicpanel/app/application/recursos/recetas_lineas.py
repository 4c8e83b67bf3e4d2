from __future__ import annotations

import copy
from typing import Any, Sequence

from clinicpanel.app.domain.estado import LookupItem
from clinicpanel.app.domain.exceptions import ValidationError
from clinicpanel.app.domain.recursos import Registro

CAMPO_LINEAS = "medicamentos"
CAMPOS_LINEA = ("id", "nombre", "dosis", "duracion")


def linea_vacia() -> dict[str, str]:
    return {campo: "" for campo in CAMPOS_LINEA}


def lineas(registro: Registro) -> list[dict[str, Any]]:
    valor = registro.get(CAMPO_LINEAS) or []
    if not isinstance(valor, list):
        raise ValidationError(f"'{CAMPO_LINEAS}' debe ser una lista")
    return valor


def add_linea(registro: Registro) -> Registro:
    """Devuelve una copia de la receta con una línea de medicamento vacía al final."""
    nuevo = copy.deepcopy(registro)
    nuevo[CAMPO_LINEAS] = [*lineas(nuevo), linea_vacia()]
    return nuevo


def remove_linea(registro: Registro, index: int) -> Registro:
    nuevo = copy.deepcopy(registro)
    actuales = lineas(nuevo)
    _check_index(actuales, index)
    nuevo[CAMPO_LINEAS] = actuales[:index] + actuales[index + 1 :]
    return nuevo


def update_linea(registro: Registro, index: int, campo: str, valor: Any) -> Registro:
    if campo not in CAMPOS_LINEA:
        raise ValidationError(f"Campo de línea desconocido: {campo}")
    nuevo = copy.deepcopy(registro)
    actuales = lineas(nuevo)
    _check_index(actuales, index)
    actuales[index] = {**actuales[index], campo: valor}
    nuevo[CAMPO_LINEAS] = actuales
    return nuevo


def select_medicamento(registro: Registro, index: int, medicamento_id: str, items: Sequence[LookupItem]) -> Registro:
    """Asigna el medicamento de la línea y copia su nombre desde el lookup."""
    nombre = next((item.label for item in items if item.id == str(medicamento_id)), "")
    con_id = update_linea(registro, index, "id", medicamento_id)
    return update_linea(con_id, index, "nombre", nombre)


def _check_index(actuales: Sequence[Any], index: int) -> None:
    if not 0 <= index < len(actuales):
        raise ValidationError(f"Línea de medicamento fuera de rango: {index}")
