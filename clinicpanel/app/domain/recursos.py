# domain/recursos.py
"""
Definición declarativa de un recurso REST de la clínica.

Cada página del panel es una instancia de ``RecursoDef``: ruta del endpoint,
esquema de campos, columnas de la tabla, lookups de claves foráneas, mensajes
de error y operaciones permitidas. El controlador genérico no conoce ningún
recurso concreto.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag, auto
from typing import Any, Callable, Optional

from clinicpanel.app.domain.exceptions import ValidationError

Registro = dict[str, Any]

CAMPO_ID = "id"


class TipoCampo(str, Enum):
    TEXTO = "TEXTO"
    TEXTO_LARGO = "TEXTO_LARGO"
    EMAIL = "EMAIL"
    FECHA = "FECHA"
    HORA = "HORA"
    NUMERO = "NUMERO"
    # Valor cerrado: el borrador arranca en la primera opción.
    ENUM = "ENUM"
    # Lista de sugerencias: el borrador arranca vacío.
    OPCION = "OPCION"
    REFERENCIA = "REFERENCIA"
    LISTA = "LISTA"


class FormatoColumna(str, Enum):
    TEXTO = "TEXTO"
    FECHA = "FECHA"
    MONEDA = "MONEDA"


class Operacion(Flag):
    LISTAR = auto()
    VER = auto()
    CREAR = auto()
    EDITAR = auto()
    ELIMINAR = auto()


CRUD_COMPLETO = Operacion.LISTAR | Operacion.VER | Operacion.CREAR | Operacion.EDITAR | Operacion.ELIMINAR


@dataclass(frozen=True, slots=True)
class CampoDef:
    nombre: str
    etiqueta: str
    tipo: TipoCampo = TipoCampo.TEXTO
    opciones: tuple[str, ...] = ()
    lookup: Optional[str] = None
    campo_nombre: Optional[str] = None
    editable: bool = True
    por_defecto: Optional[Callable[[], Any]] = None

    def __post_init__(self) -> None:
        if self.tipo == TipoCampo.ENUM and not self.opciones:
            raise ValidationError(f"Campo ENUM sin opciones: {self.nombre}")
        if self.tipo == TipoCampo.REFERENCIA and not self.lookup:
            raise ValidationError(f"Campo REFERENCIA sin lookup: {self.nombre}")

    def valor_inicial(self) -> Any:
        if self.por_defecto is not None:
            return self.por_defecto()
        if self.tipo == TipoCampo.ENUM:
            return self.opciones[0]
        if self.tipo == TipoCampo.NUMERO:
            return 0
        if self.tipo == TipoCampo.LISTA:
            return []
        return ""


@dataclass(frozen=True, slots=True)
class ColumnaDef:
    campo: str
    titulo: str
    formato: FormatoColumna = FormatoColumna.TEXTO


@dataclass(frozen=True, slots=True)
class LookupDef:
    """Colección de referencia {id, label} para un selector de clave foránea."""

    clave: str
    ruta: str
    campos_etiqueta: tuple[str, ...]
    mensaje_error: str


@dataclass(frozen=True, slots=True)
class MensajesRecurso:
    cargar: str
    detalle: str
    crear: str
    actualizar: str
    eliminar: str


@dataclass(frozen=True, slots=True)
class RecursoDef:
    clave: str
    ruta: str
    titulo: str
    singular: str
    descripcion: str
    campos: tuple[CampoDef, ...]
    columnas: tuple[ColumnaDef, ...]
    mensajes: MensajesRecurso
    lookups: tuple[LookupDef, ...] = ()
    operaciones: Operacion = CRUD_COMPLETO
    encabezado: str = ""

    def __post_init__(self) -> None:
        nombres = [c.nombre for c in self.campos]
        if CAMPO_ID in nombres:
            raise ValidationError(f"{self.clave}: 'id' es implícito, no se declara como campo")
        if len(set(nombres)) != len(nombres):
            raise ValidationError(f"{self.clave}: campos duplicados")
        claves_lookup = {lk.clave for lk in self.lookups}
        for campo in self.campos:
            if campo.lookup and campo.lookup not in claves_lookup:
                raise ValidationError(f"{self.clave}.{campo.nombre}: lookup desconocido '{campo.lookup}'")

    @property
    def titulo_tarjeta(self) -> str:
        return self.encabezado or f"Gestión de {self.titulo}"

    def permite(self, operacion: Operacion) -> bool:
        return bool(self.operaciones & operacion)

    def nuevo_borrador(self) -> Registro:
        borrador: Registro = {CAMPO_ID: ""}
        for campo in self.campos:
            borrador[campo.nombre] = campo.valor_inicial()
        return borrador

    def campo(self, nombre: str) -> CampoDef:
        for campo in self.campos:
            if campo.nombre == nombre:
                return campo
        raise KeyError(nombre)

    def lookup(self, clave: str) -> LookupDef:
        for lookup in self.lookups:
            if lookup.clave == clave:
                return lookup
        raise KeyError(clave)


def es_borrador(registro: Registro) -> bool:
    return registro.get(CAMPO_ID) in (None, "")
