from __future__ import annotations

import asyncio

import pytest

from clinicpanel.app.application.ports.api_port import RespuestaApi
from clinicpanel.app.application.recursos.catalogo import CITAS, INVENTARIO, PACIENTES, USUARIOS
from clinicpanel.app.application.recursos.controller import MENSAJE_CONEXION, RecursoController
from clinicpanel.app.domain.estado import EstadoCarga, LookupItem, ModoDialogo
from clinicpanel.app.domain.exceptions import OperacionNoPermitidaError, ValidationError
from clinicpanel.app.infrastructure.sesion import SesionMemoria


def _paciente(nombre: str, apellido: str) -> dict:
    return {
        "nombre": nombre,
        "apellido": apellido,
        "fechaNacimiento": "1990-05-12",
        "telefono": "600111222",
        "email": f"{nombre.lower()}@clinica.test",
    }


class ApiManual:
    """API falsa cuyas respuestas se resuelven a mano desde el test."""

    def __init__(self) -> None:
        self.pendientes: list[tuple[str, str, asyncio.Future]] = []

    async def request(self, method, ruta, *, token, json=None):
        futuro = asyncio.get_running_loop().create_future()
        self.pendientes.append((method, ruta, futuro))
        return await futuro

    async def close(self) -> None:
        return None


async def _esperar_pendientes(api: ApiManual, total: int) -> None:
    while len(api.pendientes) < total:
        await asyncio.sleep(0)


def test_list_sin_token_redirige_sin_llamar_a_la_red(backend, api) -> None:
    redirecciones: list[str] = []
    controller = RecursoController(
        PACIENTES, api, SesionMemoria(None), on_login_required=lambda: redirecciones.append("login")
    )

    assert asyncio.run(controller.list()) is False

    assert redirecciones == ["login"]
    assert backend.requests == []
    assert controller.autenticado is False
    assert controller.registros == ()


def test_initialize_sin_token_no_emite_peticiones(backend, api) -> None:
    redirecciones: list[str] = []
    controller = RecursoController(
        CITAS, api, SesionMemoria("   "), on_login_required=lambda: redirecciones.append("login")
    )

    assert asyncio.run(controller.initialize()) is False

    assert redirecciones == ["login"]
    assert backend.calls() == []


def test_initialize_lista_con_bearer_token(backend, api, sesion) -> None:
    backend.seed("pacientes", _paciente("Ana", "García"), _paciente("Luis", "Pérez"))
    controller = RecursoController(PACIENTES, api, sesion)

    assert asyncio.run(controller.initialize()) is True

    assert backend.calls() == [("GET", "/api/pacientes")]
    assert backend.requests[0].headers["Authorization"] == "Bearer tok-demo-123"
    assert [r["nombre"] for r in controller.registros] == ["Ana", "Luis"]
    assert controller.estado_listado == EstadoCarga.CARGADO
    assert controller.error == ""


def test_list_error_http_usa_mensaje_de_carga(backend, api, sesion) -> None:
    backend.fail("GET", "/api/pacientes", 500)
    controller = RecursoController(PACIENTES, api, sesion)

    assert asyncio.run(controller.list()) is False

    assert controller.error == "Error al cargar pacientes"
    assert controller.estado_listado == EstadoCarga.ERROR


def test_list_fallo_de_transporte_usa_error_de_conexion(backend, api, sesion) -> None:
    backend.disconnect("GET", "/api/citas")
    controller = RecursoController(CITAS, api, sesion)

    assert asyncio.run(controller.list()) is False

    assert controller.error == MENSAJE_CONEXION
    assert controller.error == "Error de conexión"


def test_list_dos_veces_sin_mutacion_devuelve_la_misma_coleccion(backend, api, sesion) -> None:
    backend.seed("pacientes", _paciente("Ana", "García"), _paciente("Luis", "Pérez"))
    controller = RecursoController(PACIENTES, api, sesion)

    async def _escenario():
        await controller.list()
        primera = controller.registros
        await controller.list()
        return primera, controller.registros

    primera, segunda = asyncio.run(_escenario())

    assert primera == segunda
    assert backend.calls() == [("GET", "/api/pacientes"), ("GET", "/api/pacientes")]


def test_list_estados_de_carga_pasan_por_cargando(backend, api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)
    estados: list[EstadoCarga] = []
    controller.subscribe(lambda snapshot: estados.append(snapshot.estado_listado))

    asyncio.run(controller.list())

    assert estados == [EstadoCarga.CARGANDO, EstadoCarga.CARGADO]


def test_list_ignora_respuesta_de_peticion_superada() -> None:
    api = ApiManual()
    controller = RecursoController(PACIENTES, api, SesionMemoria("tok"))

    async def _escenario():
        primera = asyncio.create_task(controller.list())
        segunda = asyncio.create_task(controller.list())
        await _esperar_pendientes(api, 2)
        api.pendientes[1][2].set_result(RespuestaApi(200, [{"id": "2", "nombre": "Nueva"}]))
        resultado_segunda = await segunda
        api.pendientes[0][2].set_result(RespuestaApi(200, [{"id": "1", "nombre": "Vieja"}]))
        resultado_primera = await primera
        return resultado_primera, resultado_segunda

    resultado_primera, resultado_segunda = asyncio.run(_escenario())

    assert resultado_segunda is True
    assert resultado_primera is False
    assert controller.registros == ({"id": "2", "nombre": "Nueva"},)
    assert controller.estado_listado == EstadoCarga.CARGADO


def test_list_respuesta_2xx_que_no_es_lista_es_error_de_carga() -> None:
    api = ApiManual()
    controller = RecursoController(PACIENTES, api, SesionMemoria("tok"))

    async def _escenario():
        tarea = asyncio.create_task(controller.list())
        await _esperar_pendientes(api, 1)
        api.pendientes[0][2].set_result(RespuestaApi(200, {"items": []}))
        return await tarea

    assert asyncio.run(_escenario()) is False
    assert controller.error == "Error al cargar pacientes"


def test_start_create_paciente_y_guardar_hace_post_y_vuelve_a_listar(
    backend, api, sesion, assert_expected_actual
) -> None:
    controller = RecursoController(PACIENTES, api, sesion)

    controller.start_create()
    assert_expected_actual(
        {"id": "", "nombre": "", "apellido": "", "fechaNacimiento": "", "telefono": "", "email": ""},
        controller.dialogo.registro,
        message="Borrador de paciente inesperado",
    )
    assert controller.dialogo.abierto is True
    assert controller.dialogo.modo == ModoDialogo.EDITAR

    for campo, valor in _paciente("Ana", "García").items():
        controller.update_field(campo, valor)

    assert asyncio.run(controller.save()) is True

    assert backend.calls() == [("POST", "/api/pacientes"), ("GET", "/api/pacientes")]
    assert_expected_actual(
        {"id": "", **_paciente("Ana", "García")},
        backend.body(0),
        message="Cuerpo del POST inesperado",
    )
    assert controller.dialogo.abierto is False
    assert [r["nombre"] for r in controller.registros] == ["Ana"]
    assert controller.error == ""


def test_save_con_id_hace_put_a_la_ruta_del_registro(backend, api, sesion) -> None:
    (existente,) = backend.seed("pacientes", _paciente("Ana", "García"))
    controller = RecursoController(PACIENTES, api, sesion)

    controller.start_edit(existente)
    controller.update_field("telefono", "699000111")

    assert asyncio.run(controller.save()) is True

    assert backend.calls() == [("PUT", f"/api/pacientes/{existente['id']}"), ("GET", "/api/pacientes")]
    assert backend.body(0)["telefono"] == "699000111"
    assert controller.registros[0]["telefono"] == "699000111"


def test_save_con_id_cero_es_una_actualizacion(backend, api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)

    asyncio.run(controller.save({"id": 0, **_paciente("Berta", "Ruiz")}))

    assert backend.calls() == [("PUT", "/api/pacientes/0")]


def test_start_edit_trabaja_sobre_una_copia(api, sesion) -> None:
    original = {"id": "7", **_paciente("Ana", "García")}
    controller = RecursoController(PACIENTES, api, sesion)

    controller.start_edit(original)
    controller.update_field("nombre", "Ana María")

    assert original["nombre"] == "Ana"
    assert controller.dialogo.registro["nombre"] == "Ana María"


def test_save_fallido_mantiene_dialogo_y_no_vuelve_a_listar(backend, api, sesion) -> None:
    backend.fail("POST", "/api/pacientes", 400)
    controller = RecursoController(PACIENTES, api, sesion)
    controller.start_create()
    controller.update_field("nombre", "Ana")

    assert asyncio.run(controller.save()) is False

    assert backend.calls() == [("POST", "/api/pacientes")]
    assert controller.dialogo.abierto is True
    assert controller.dialogo.registro["nombre"] == "Ana"
    assert controller.error == "Error al crear paciente"


def test_update_fallido_usa_mensaje_de_actualizacion(backend, api, sesion) -> None:
    (existente,) = backend.seed("citas", {"pacienteId": "1", "estado": "Programada"})
    backend.fail("PUT", f"/api/citas/{existente['id']}", 500)
    controller = RecursoController(CITAS, api, sesion)
    controller.start_edit(existente)

    assert asyncio.run(controller.save()) is False

    assert controller.error == "Error al actualizar cita"
    assert controller.dialogo.abierto is True


def test_crear_y_consultar_devuelve_los_campos_enviados(backend, api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)
    enviado = _paciente("Marta", "Ruiz")

    async def _escenario():
        controller.start_create()
        for campo, valor in enviado.items():
            controller.update_field(campo, valor)
        await controller.save()
        creado = controller.registros[0]
        await controller.view_details(creado["id"])

    asyncio.run(_escenario())

    detalle = controller.dialogo.registro
    assert controller.dialogo.modo == ModoDialogo.VER
    assert {k: v for k, v in detalle.items() if k != "id"} == enviado
    assert backend.calls()[-1] == ("GET", f"/api/pacientes/{detalle['id']}")


def test_view_details_fallido_no_abre_dialogo(backend, api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)

    assert asyncio.run(controller.view_details("99")) is False

    assert controller.dialogo.abierto is False
    assert controller.error == "Error al obtener detalles del paciente"
    assert controller.estado_detalle == EstadoCarga.ERROR


def test_remove_hace_delete_y_vuelve_a_listar(backend, api, sesion) -> None:
    ana, luis = backend.seed("pacientes", _paciente("Ana", "García"), _paciente("Luis", "Pérez"))
    controller = RecursoController(PACIENTES, api, sesion)

    assert asyncio.run(controller.remove(ana["id"])) is True

    assert backend.calls() == [("DELETE", f"/api/pacientes/{ana['id']}"), ("GET", "/api/pacientes")]
    assert [r["id"] for r in controller.registros] == [luis["id"]]


def test_remove_fallido_conserva_registro_y_sobrescribe_error(backend, api, sesion) -> None:
    (ana,) = backend.seed("pacientes", _paciente("Ana", "García"))
    controller = RecursoController(PACIENTES, api, sesion)

    async def _escenario():
        await controller.list()
        await controller.view_details("999")
        error_previo = controller.error
        backend.fail("DELETE", f"/api/pacientes/{ana['id']}", 404)
        await controller.remove(ana["id"])
        return error_previo

    error_previo = asyncio.run(_escenario())

    assert error_previo == "Error al obtener detalles del paciente"
    assert controller.error == "Error al eliminar paciente"
    assert [r["id"] for r in controller.registros] == [ana["id"]]
    assert backend.calls()[-1] == ("DELETE", f"/api/pacientes/{ana['id']}")


def test_remove_cita_fallido_usa_mensaje_de_cancelacion(backend, api, sesion) -> None:
    backend.fail("DELETE", "/api/citas/5", 500)
    controller = RecursoController(CITAS, api, sesion)

    asyncio.run(controller.remove("5"))

    assert controller.error == "Error al cancelar cita"


def test_operacion_correcta_limpia_el_error(backend, api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)

    async def _escenario():
        backend.fail("GET", "/api/pacientes", 503)
        await controller.list()
        error = controller.error
        backend.reset_failures()
        await controller.list()
        return error

    assert asyncio.run(_escenario()) == "Error al cargar pacientes"
    assert controller.error == ""


def test_cita_nueva_solo_prefija_estado_programada(api, sesion) -> None:
    controller = RecursoController(CITAS, api, sesion)

    controller.start_create()

    borrador = controller.dialogo.registro
    assert borrador["estado"] == "Programada"
    assert {k: v for k, v in borrador.items() if k != "estado"} == {
        "id": "",
        "pacienteId": "",
        "pacienteNombre": "",
        "medicoId": "",
        "medicoNombre": "",
        "fecha": "",
        "hora": "",
        "motivo": "",
    }


def test_select_reference_sintetiza_nombre_desde_lookup(api, sesion) -> None:
    controller = RecursoController(CITAS, api, sesion)
    items = (LookupItem("3", "Ana García"), LookupItem("4", "Luis Pérez"))

    controller.start_create()
    controller.select_reference("pacienteId", "4", items)

    assert controller.dialogo.registro["pacienteId"] == "4"
    assert controller.dialogo.registro["pacienteNombre"] == "Luis Pérez"


def test_select_reference_rechaza_campos_que_no_son_referencia(api, sesion) -> None:
    controller = RecursoController(CITAS, api, sesion)
    controller.start_create()

    with pytest.raises(ValidationError):
        controller.select_reference("motivo", "1", ())


def test_update_field_fuera_de_edicion_no_esta_permitido(api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)

    with pytest.raises(OperacionNoPermitidaError):
        controller.update_field("nombre", "Ana")


def test_update_field_desconocido_es_error_de_validacion(api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)
    controller.start_create()

    with pytest.raises(ValidationError):
        controller.update_field("dni", "123")


def test_close_dialog_descarta_el_borrador(api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)
    controller.start_create()

    controller.close_dialog()

    assert controller.dialogo.abierto is False
    assert controller.dialogo.registro is None


def test_operaciones_no_admitidas_por_el_recurso(backend, api, sesion) -> None:
    usuarios = RecursoController(USUARIOS, api, sesion)
    inventario = RecursoController(INVENTARIO, api, sesion)

    with pytest.raises(OperacionNoPermitidaError):
        usuarios.start_create()
    with pytest.raises(OperacionNoPermitidaError):
        inventario.start_edit({"id": "1"})
    with pytest.raises(OperacionNoPermitidaError):
        asyncio.run(inventario.remove("1"))
    with pytest.raises(OperacionNoPermitidaError):
        asyncio.run(usuarios.view_details("1"))

    assert backend.requests == []


def test_snapshot_es_una_copia_independiente(backend, api, sesion) -> None:
    backend.seed("pacientes", _paciente("Ana", "García"))
    controller = RecursoController(PACIENTES, api, sesion)
    asyncio.run(controller.list())

    snapshot = controller.snapshot()
    snapshot.registros[0]["nombre"] = "Alterado"

    assert controller.registros[0]["nombre"] == "Ana"
    assert snapshot.clave == "pacientes"


def test_subscribe_devuelve_funcion_para_desuscribir(api, sesion) -> None:
    controller = RecursoController(PACIENTES, api, sesion)
    recibidos: list[object] = []
    unsubscribe = controller.subscribe(recibidos.append)

    controller.start_create()
    unsubscribe()
    controller.close_dialog()

    assert len(recibidos) == 1


def test_snapshots_comparten_la_copia_de_registros_hasta_el_siguiente_listado(backend, api, sesion) -> None:
    backend.seed("pacientes", _paciente("Ana", "García"))
    controller = RecursoController(PACIENTES, api, sesion)
    asyncio.run(controller.list())

    controller.start_create()
    antes = controller.snapshot()
    controller.update_field("nombre", "Luis")
    despues = controller.snapshot()

    assert despues.registros is antes.registros
    assert despues.registros[0] is not controller.registros[0]
    assert despues.dialogo.registro["nombre"] == "Luis"
    assert antes.dialogo.registro["nombre"] == ""
