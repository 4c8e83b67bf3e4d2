from __future__ import annotations

import copy
from typing import Any, Callable, Optional, Sequence
from urllib.parse import quote

from clinicpanel.app.application.ports.api_port import ApiClient, RespuestaApi
from clinicpanel.app.application.ports.sesion_port import TokenProvider
from clinicpanel.app.bootstrap_logging import bind_recurso, get_logger
from clinicpanel.app.domain.estado import EstadoCarga, EstadoDialogo, LookupItem, ModoDialogo, RecursoSnapshot
from clinicpanel.app.domain.exceptions import ErrorConexion, OperacionNoPermitidaError, ValidationError
from clinicpanel.app.domain.recursos import CAMPO_ID, Operacion, RecursoDef, Registro, TipoCampo, es_borrador

LOGGER = get_logger(__name__)

MENSAJE_CONEXION = "Error de conexión"

Listener = Callable[[RecursoSnapshot], None]


class RecursoController:
    """Máquina de estados CRUD genérica para una colección REST.

    - Listado, detalle, alta, edición y baja contra ``/api/{ruta}``.
    - Sin fusión optimista: tras cada mutación correcta se vuelve a listar.
    - Una única ranura de error, sobrescrita por el último fallo y vaciada
      por la siguiente operación correcta.
    - Listado y detalle descartan respuestas de peticiones ya superadas.
    """

    def __init__(
        self,
        recurso: RecursoDef,
        api: ApiClient,
        sesion: TokenProvider,
        *,
        on_login_required: Optional[Callable[[], None]] = None,
    ) -> None:
        self._recurso = recurso
        self._api = api
        self._sesion = sesion
        self._on_login_required = on_login_required
        self._listeners: list[Listener] = []

        self._autenticado = True
        self._registros: tuple[Registro, ...] = ()
        # Copia compartida por todos los snapshots hasta el próximo listado.
        self._registros_snapshot: tuple[Registro, ...] = ()
        self._estado_listado = EstadoCarga.INACTIVO
        self._estado_detalle = EstadoCarga.INACTIVO
        self._dialogo = EstadoDialogo.cerrado()
        self._error = ""
        self._seq_listado = 0
        self._seq_detalle = 0

    # ------------------------------------------------------------
    # Estado
    # ------------------------------------------------------------

    @property
    def recurso(self) -> RecursoDef:
        return self._recurso

    @property
    def registros(self) -> tuple[Registro, ...]:
        return self._registros

    @property
    def dialogo(self) -> EstadoDialogo:
        return self._dialogo

    @property
    def error(self) -> str:
        return self._error

    @property
    def autenticado(self) -> bool:
        return self._autenticado

    @property
    def estado_listado(self) -> EstadoCarga:
        return self._estado_listado

    @property
    def estado_detalle(self) -> EstadoCarga:
        return self._estado_detalle

    def snapshot(self) -> RecursoSnapshot:
        return RecursoSnapshot(
            clave=self._recurso.clave,
            autenticado=self._autenticado,
            registros=self._registros_snapshot,
            estado_listado=self._estado_listado,
            estado_detalle=self._estado_detalle,
            dialogo=copy.deepcopy(self._dialogo),
            error=self._error,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------
    # Red
    # ------------------------------------------------------------

    async def initialize(self) -> bool:
        bind_recurso(self._recurso.ruta)
        if self._token_or_redirect() is None:
            return False
        return await self.list()

    async def list(self) -> bool:
        self._require(Operacion.LISTAR)
        bind_recurso(self._recurso.ruta)
        token = self._token_or_redirect()
        if token is None:
            return False

        self._seq_listado += 1
        seq = self._seq_listado
        self._estado_listado = EstadoCarga.CARGANDO
        self._notify()

        respuesta = await self._send("GET", self._recurso.ruta, token)
        if seq != self._seq_listado:
            LOGGER.info("stale_response_ignored slot=listado seq=%s actual=%s", seq, self._seq_listado)
            return False
        if respuesta is None:
            self._fail_listado(MENSAJE_CONEXION)
            return False
        if not respuesta.ok or not isinstance(respuesta.datos, list):
            LOGGER.warning("recurso_listado_error status=%s", respuesta.status_code)
            self._fail_listado(self._recurso.mensajes.cargar)
            return False

        self._registros = tuple(respuesta.datos)
        self._registros_snapshot = copy.deepcopy(self._registros)
        self._estado_listado = EstadoCarga.CARGADO
        self._error = ""
        LOGGER.info("recurso_listado total=%s", len(self._registros))
        self._notify()
        return True

    async def view_details(self, record_id: Any) -> bool:
        self._require(Operacion.VER)
        bind_recurso(self._recurso.ruta)
        token = self._token_or_redirect()
        if token is None:
            return False

        self._seq_detalle += 1
        seq = self._seq_detalle
        self._estado_detalle = EstadoCarga.CARGANDO
        self._notify()

        respuesta = await self._send("GET", self._item_ruta(record_id), token)
        if seq != self._seq_detalle:
            LOGGER.info("stale_response_ignored slot=detalle seq=%s actual=%s", seq, self._seq_detalle)
            return False
        if respuesta is None or not respuesta.ok or not isinstance(respuesta.datos, dict):
            self._estado_detalle = EstadoCarga.ERROR
            self._error = MENSAJE_CONEXION if respuesta is None else self._recurso.mensajes.detalle
            self._notify()
            return False

        self._estado_detalle = EstadoCarga.CARGADO
        self._dialogo = EstadoDialogo(abierto=True, modo=ModoDialogo.VER, registro=dict(respuesta.datos))
        self._error = ""
        self._notify()
        return True

    async def save(self, record: Optional[Registro] = None) -> bool:
        registro = record if record is not None else self._dialogo.registro
        if registro is None:
            return False
        creando = es_borrador(registro)
        self._require(Operacion.CREAR if creando else Operacion.EDITAR)
        bind_recurso(self._recurso.ruta)
        token = self._token_or_redirect()
        if token is None:
            return False

        if creando:
            method, ruta, mensaje = "POST", self._recurso.ruta, self._recurso.mensajes.crear
        else:
            method, ruta, mensaje = "PUT", self._item_ruta(registro[CAMPO_ID]), self._recurso.mensajes.actualizar

        respuesta = await self._send(method, ruta, token, json=registro)
        if respuesta is None or not respuesta.ok:
            # El diálogo sigue abierto con los datos introducidos.
            self._error = MENSAJE_CONEXION if respuesta is None else mensaje
            self._notify()
            return False

        LOGGER.info("recurso_guardado method=%s status=%s", method, respuesta.status_code)
        self._dialogo = EstadoDialogo.cerrado()
        self._error = ""
        self._notify()
        await self.list()
        return True

    async def remove(self, record_id: Any) -> bool:
        self._require(Operacion.ELIMINAR)
        bind_recurso(self._recurso.ruta)
        token = self._token_or_redirect()
        if token is None:
            return False

        respuesta = await self._send("DELETE", self._item_ruta(record_id), token)
        if respuesta is None or not respuesta.ok:
            self._error = MENSAJE_CONEXION if respuesta is None else self._recurso.mensajes.eliminar
            self._notify()
            return False

        LOGGER.info("recurso_eliminado status=%s", respuesta.status_code)
        self._error = ""
        self._notify()
        await self.list()
        return True

    # ------------------------------------------------------------
    # Diálogo
    # ------------------------------------------------------------

    def start_create(self) -> None:
        self._require(Operacion.CREAR)
        self._dialogo = EstadoDialogo(abierto=True, modo=ModoDialogo.EDITAR, registro=self._recurso.nuevo_borrador())
        self._notify()

    def start_edit(self, record: Registro) -> None:
        self._require(Operacion.EDITAR)
        self._dialogo = EstadoDialogo(abierto=True, modo=ModoDialogo.EDITAR, registro=copy.deepcopy(record))
        self._notify()

    def close_dialog(self) -> None:
        self._dialogo = EstadoDialogo.cerrado()
        self._notify()

    def update_field(self, nombre: str, valor: Any) -> None:
        self._require_editing()
        try:
            self._recurso.campo(nombre)
        except KeyError as exc:
            raise ValidationError(f"{self._recurso.clave}: campo desconocido '{nombre}'") from exc
        self._replace_draft({nombre: valor})

    def select_reference(self, nombre: str, ref_id: str, items: Sequence[LookupItem]) -> None:
        """Asigna una clave foránea y sintetiza su campo de nombre desde el lookup."""
        self._require_editing()
        campo = self._recurso.campo(nombre)
        if campo.tipo != TipoCampo.REFERENCIA:
            raise ValidationError(f"{self._recurso.clave}.{nombre} no es una referencia")
        cambios: Registro = {nombre: ref_id}
        if campo.campo_nombre:
            cambios[campo.campo_nombre] = next((i.label for i in items if i.id == str(ref_id)), "")
        self._replace_draft(cambios)

    # ------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------

    def _token_or_redirect(self) -> Optional[str]:
        token = self._sesion.token()
        if token:
            self._autenticado = True
            return token
        LOGGER.warning("session_missing redirect=login")
        self._autenticado = False
        self._notify()
        if self._on_login_required is not None:
            self._on_login_required()
        return None

    async def _send(self, method: str, ruta: str, token: str, json: Any = None) -> Optional[RespuestaApi]:
        try:
            return await self._api.request(method, ruta, token=token, json=json)
        except ErrorConexion:
            return None

    def _fail_listado(self, mensaje: str) -> None:
        self._estado_listado = EstadoCarga.ERROR
        self._error = mensaje
        self._notify()

    def _item_ruta(self, record_id: Any) -> str:
        return f"{self._recurso.ruta}/{quote(str(record_id), safe='')}"

    def _require(self, operacion: Operacion) -> None:
        if self._recurso.permite(operacion):
            return
        raise OperacionNoPermitidaError(f"'{self._recurso.clave}' no admite {operacion.name}")

    def _require_editing(self) -> None:
        if not self._dialogo.abierto or self._dialogo.modo != ModoDialogo.EDITAR or self._dialogo.registro is None:
            raise OperacionNoPermitidaError("El diálogo no está abierto en modo edición")

    def _replace_draft(self, cambios: Registro) -> None:
        registro = {**(self._dialogo.registro or {}), **cambios}
        self._dialogo = EstadoDialogo(abierto=True, modo=ModoDialogo.EDITAR, registro=registro)
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
