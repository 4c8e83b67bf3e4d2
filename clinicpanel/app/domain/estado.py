from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from clinicpanel.app.domain.recursos import Registro


class EstadoCarga(str, Enum):
    INACTIVO = "INACTIVO"
    CARGANDO = "CARGANDO"
    CARGADO = "CARGADO"
    ERROR = "ERROR"


class ModoDialogo(str, Enum):
    VER = "VER"
    EDITAR = "EDITAR"


@dataclass(frozen=True, slots=True)
class EstadoDialogo:
    abierto: bool = False
    modo: ModoDialogo = ModoDialogo.VER
    registro: Optional[Registro] = None

    @classmethod
    def cerrado(cls) -> "EstadoDialogo":
        return cls()


@dataclass(frozen=True, slots=True)
class LookupItem:
    id: str
    label: str


@dataclass(frozen=True, slots=True)
class RecursoSnapshot:
    """Vista inmutable del estado del controlador tras cada transición."""

    clave: str
    autenticado: bool
    registros: tuple[Registro, ...]
    estado_listado: EstadoCarga
    estado_detalle: EstadoCarga
    dialogo: EstadoDialogo
    error: str = ""


@dataclass(frozen=True, slots=True)
class LookupsSnapshot:
    colecciones: dict[str, tuple[LookupItem, ...]] = field(default_factory=dict)
    estados: dict[str, EstadoCarga] = field(default_factory=dict)
    error: str = ""
