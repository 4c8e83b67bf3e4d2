from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

from clinicpanel.app.application.ports.api_port import ApiClient
from clinicpanel.app.application.ports.sesion_port import TokenProvider
from clinicpanel.app.application.recursos.controller import MENSAJE_CONEXION
from clinicpanel.app.bootstrap_logging import bind_recurso, get_logger
from clinicpanel.app.domain.estado import EstadoCarga, LookupItem, LookupsSnapshot
from clinicpanel.app.domain.exceptions import ErrorConexion
from clinicpanel.app.domain.recursos import LookupDef

LOGGER = get_logger(__name__)

Listener = Callable[[LookupsSnapshot], None]


def build_label(item: Mapping[str, Any], campos_etiqueta: Sequence[str]) -> str:
    partes = (item.get(campo) for campo in campos_etiqueta)
    return " ".join(str(parte) for parte in partes if parte not in (None, ""))


def to_lookup_items(datos: Iterable[Any], campos_etiqueta: Sequence[str]) -> tuple[LookupItem, ...]:
    items: list[LookupItem] = []
    for item in datos:
        if not isinstance(item, Mapping) or item.get("id") in (None, ""):
            LOGGER.warning("lookup_item_sin_id descartado=1")
            continue
        items.append(LookupItem(id=str(item["id"]), label=build_label(item, campos_etiqueta)))
    return tuple(items)


class LookupResolver:
    """Colecciones de referencia {id, label} para los selectores de claves foráneas.

    Solo lectura: se cargan al montar la página, en paralelo al
    listado principal; un fallo deja la colección vacía sin bloquear nada y
    se reintenta al volver a la página.
    """

    def __init__(self, lookups: Sequence[LookupDef], api: ApiClient, sesion: TokenProvider) -> None:
        self._lookups = {lookup.clave: lookup for lookup in lookups}
        self._api = api
        self._sesion = sesion
        self._colecciones: dict[str, tuple[LookupItem, ...]] = {clave: () for clave in self._lookups}
        self._estados: dict[str, EstadoCarga] = {clave: EstadoCarga.INACTIVO for clave in self._lookups}
        self._seq: dict[str, int] = {clave: 0 for clave in self._lookups}
        # Mensaje por lookup fallido; el último fallo queda al final.
        self._errores: dict[str, str] = {}
        self._listeners: list[Listener] = []

    @property
    def error(self) -> str:
        return next(reversed(self._errores.values()), "")

    def claves(self) -> list[str]:
        return list(self._lookups)

    def items(self, clave: str) -> tuple[LookupItem, ...]:
        return self._colecciones.get(clave, ())

    def estado(self, clave: str) -> EstadoCarga:
        return self._estados.get(clave, EstadoCarga.INACTIVO)

    def label_for(self, clave: str, ref_id: Any) -> str:
        buscado = str(ref_id)
        return next((item.label for item in self.items(clave) if item.id == buscado), "")

    def snapshot(self) -> LookupsSnapshot:
        return LookupsSnapshot(colecciones=dict(self._colecciones), estados=dict(self._estados), error=self.error)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def load_all(self) -> None:
        if not self._lookups:
            return
        await asyncio.gather(*(self.load_lookup(lookup) for lookup in self._lookups.values()))

    async def reload_failed(self) -> None:
        """Reintenta solo los lookups que quedaron en ERROR."""
        fallidos = [lookup for clave, lookup in self._lookups.items() if self._estados.get(clave) == EstadoCarga.ERROR]
        if fallidos:
            await asyncio.gather(*(self.load_lookup(lookup) for lookup in fallidos))

    async def load_lookup(self, lookup: Union[LookupDef, str]) -> bool:
        definicion = self._lookups[lookup] if isinstance(lookup, str) else lookup
        clave = definicion.clave
        self._lookups.setdefault(clave, definicion)
        bind_recurso(definicion.ruta)
        token = self._sesion.token()
        if not token:
            # La redirección al login la decide el controlador del recurso.
            return False

        self._seq[clave] = self._seq.get(clave, 0) + 1
        seq = self._seq[clave]
        self._estados[clave] = EstadoCarga.CARGANDO
        self._notify()

        try:
            respuesta = await self._api.request("GET", definicion.ruta, token=token)
        except ErrorConexion:
            respuesta = None
        if seq != self._seq[clave]:
            LOGGER.info("stale_response_ignored slot=lookup clave=%s", clave)
            return False
        if respuesta is None or not respuesta.ok or not isinstance(respuesta.datos, list):
            LOGGER.warning(
                "lookup_error clave=%s status=%s",
                clave,
                "-" if respuesta is None else respuesta.status_code,
            )
            self._colecciones[clave] = ()
            self._estados[clave] = EstadoCarga.ERROR
            self._errores.pop(clave, None)
            self._errores[clave] = MENSAJE_CONEXION if respuesta is None else definicion.mensaje_error
            self._notify()
            return False

        self._colecciones[clave] = to_lookup_items(respuesta.datos, definicion.campos_etiqueta)
        self._estados[clave] = EstadoCarga.CARGADO
        self._errores.pop(clave, None)
        LOGGER.info("lookup_cargado clave=%s total=%s", clave, len(self._colecciones[clave]))
        self._notify()
        return True

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
