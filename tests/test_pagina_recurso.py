from __future__ import annotations

import asyncio

from clinicpanel.app.application.recursos.catalogo import CITAS, HORARIOS
from clinicpanel.app.application.recursos.pagina import PaginaRecurso
from clinicpanel.app.domain.estado import EstadoCarga
from clinicpanel.app.infrastructure.sesion import SesionMemoria


def test_fallo_del_lookup_de_personal_no_impide_cargar_horarios(backend, api, sesion) -> None:
    backend.seed("horarios", {"personalId": "1", "personalNombre": "Carla López", "dia": "Lunes"})
    backend.fail("GET", "/api/personal", 500)
    pagina = PaginaRecurso(HORARIOS, api, sesion)

    assert asyncio.run(pagina.mount()) is True

    assert [r["dia"] for r in pagina.controller.registros] == ["Lunes"]
    assert pagina.controller.estado_listado == EstadoCarga.CARGADO
    assert pagina.controller.error == ""
    assert pagina.lookups.estado("personal") == EstadoCarga.ERROR
    assert pagina.lookups.items("personal") == ()
    assert pagina.error_visible == "Error al cargar personal"


def test_mount_lanza_listado_y_lookups_en_paralelo(backend, api, sesion) -> None:
    backend.seed("pacientes", {"nombre": "Ana", "apellido": "García"})
    backend.seed("personal", {"nombre": "Elena", "apellido": "Martínez"})
    pagina = PaginaRecurso(CITAS, api, sesion)

    asyncio.run(pagina.mount())

    assert sorted(backend.calls()) == [
        ("GET", "/api/citas"),
        ("GET", "/api/pacientes"),
        ("GET", "/api/personal"),
    ]
    assert pagina.lookups.label_for("pacientes", "1") == "Ana García"
    assert pagina.lookups.label_for("medicos", "2") == "Elena Martínez"


def test_mount_sin_token_redirige_y_no_carga_lookups(backend, api) -> None:
    redirecciones: list[str] = []
    pagina = PaginaRecurso(CITAS, api, SesionMemoria(None), on_login_required=lambda: redirecciones.append("login"))

    assert asyncio.run(pagina.mount()) is False

    assert redirecciones == ["login"]
    assert backend.requests == []


def test_error_visible_prioriza_el_del_controlador(backend, api, sesion) -> None:
    backend.fail("GET", "/api/citas", 500)
    backend.fail("GET", "/api/pacientes", 500)
    pagina = PaginaRecurso(CITAS, api, sesion)

    asyncio.run(pagina.mount())

    assert pagina.controller.error == "Error al cargar citas"
    assert pagina.lookups.error == "Error al cargar pacientes"
    assert pagina.error_visible == "Error al cargar citas"


def test_select_reference_usa_la_coleccion_del_lookup(backend, api, sesion) -> None:
    backend.seed("pacientes", {"nombre": "Ana", "apellido": "García"}, {"nombre": "Luis", "apellido": "Pérez"})
    pagina = PaginaRecurso(CITAS, api, sesion)

    async def _escenario():
        await pagina.mount()
        pagina.controller.start_create()
        pagina.select_reference("pacienteId", "2")
        pagina.controller.update_field("fecha", "2024-05-20")
        await pagina.controller.save()

    asyncio.run(_escenario())

    post = next(i for i, (method, _path) in enumerate(backend.calls()) if method == "POST")
    body = backend.body(post)
    assert body["pacienteId"] == "2"
    assert body["pacienteNombre"] == "Luis Pérez"
    assert body["estado"] == "Programada"
    assert backend.calls()[-1] == ("GET", "/api/citas")


def test_lookup_recuperado_limpia_el_error_visible(backend, api, sesion) -> None:
    backend.seed("personal", {"nombre": "Carla", "apellido": "López"})
    backend.fail("GET", "/api/personal", 500)
    pagina = PaginaRecurso(HORARIOS, api, sesion)
    asyncio.run(pagina.mount())
    assert pagina.error_visible == "Error al cargar personal"

    backend.reset_failures()
    assert asyncio.run(pagina.refresh()) is True

    assert pagina.lookups.estado("personal") == EstadoCarga.CARGADO
    assert pagina.lookups.label_for("personal", "1") == "Carla López"
    assert pagina.lookups.error == ""
    assert pagina.error_visible == ""


def test_refresh_solo_reintenta_los_lookups_fallidos(backend, api, sesion) -> None:
    backend.fail("GET", "/api/pacientes", 500)
    pagina = PaginaRecurso(CITAS, api, sesion)
    asyncio.run(pagina.mount())
    backend.requests.clear()

    asyncio.run(pagina.refresh())

    assert sorted(backend.calls()) == [("GET", "/api/citas"), ("GET", "/api/pacientes")]
    assert pagina.error_visible == "Error al cargar pacientes"
