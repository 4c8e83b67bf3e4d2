from __future__ import annotations

import difflib
import json
import pprint
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from clinicpanel.app.infrastructure.http.api_client import HttpxApiClient
from clinicpanel.app.infrastructure.sesion import SesionMemoria

API_URL = "http://api.clinica.test"
TOKEN = "tok-demo-123"


class FakeBackend:
    """Backend REST en memoria servido a httpx mediante ``MockTransport``.

    - ``GET/POST /api/{ruta}`` y ``GET/PUT/DELETE /api/{ruta}/{id}``.
    - ``fail()`` fuerza un status para (método, path); ``disconnect()`` un fallo de transporte.
    - Cada petición recibida queda en ``requests``.
    """

    def __init__(self) -> None:
        self.store: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.requests: List[httpx.Request] = []
        self._fallos: Dict[Tuple[str, str], int] = {}
        self._caidos: set[Tuple[str, str]] = set()
        self._next_id = 1

    def seed(self, ruta: str, *registros: Dict[str, Any]) -> List[Dict[str, Any]]:
        coleccion = self.store.setdefault(ruta, {})
        creados = []
        for registro in registros:
            nuevo = {**registro, "id": registro.get("id") or self._new_id()}
            coleccion[str(nuevo["id"])] = nuevo
            creados.append(nuevo)
        return creados

    def fail(self, method: str, path: str, status: int = 500) -> None:
        self._fallos[(method, path)] = status

    def disconnect(self, method: str, path: str) -> None:
        self._caidos.add((method, path))

    def reset_failures(self) -> None:
        self._fallos.clear()
        self._caidos.clear()

    def calls(self) -> List[Tuple[str, str]]:
        return [(request.method, request.url.path) for request in self.requests]

    def body(self, index: int) -> Any:
        return json.loads(self.requests[index].content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        clave = (request.method, request.url.path)
        if clave in self._caidos:
            raise httpx.ConnectError("backend caído", request=request)
        if clave in self._fallos:
            return httpx.Response(self._fallos[clave], json={"message": "error simulado"})

        partes = request.url.path.removeprefix("/api/").strip("/").split("/")
        ruta = partes[0]
        registro_id: Optional[str] = partes[1] if len(partes) > 1 else None
        coleccion = self.store.setdefault(ruta, {})

        if registro_id is None:
            if request.method == "GET":
                return httpx.Response(200, json=list(coleccion.values()))
            if request.method == "POST":
                nuevo = {**json.loads(request.content), "id": self._new_id()}
                coleccion[nuevo["id"]] = nuevo
                return httpx.Response(201, json=nuevo)
            return httpx.Response(405)

        if registro_id not in coleccion:
            return httpx.Response(404, json={"message": "No encontrado"})
        if request.method == "GET":
            return httpx.Response(200, json=coleccion[registro_id])
        if request.method == "PUT":
            actualizado = {**json.loads(request.content), "id": registro_id}
            coleccion[registro_id] = actualizado
            return httpx.Response(200, json=actualizado)
        if request.method == "DELETE":
            del coleccion[registro_id]
            return httpx.Response(204)
        return httpx.Response(405)

    def _new_id(self) -> str:
        nuevo = str(self._next_id)
        self._next_id += 1
        return nuevo


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def api(backend: FakeBackend) -> HttpxApiClient:
    return HttpxApiClient(API_URL, timeout=5.0, transport=backend.transport())


@pytest.fixture()
def sesion() -> SesionMemoria:
    return SesionMemoria(TOKEN)


@pytest.fixture()
def assert_expected_actual():
    def _assert(expected: Any, actual: Any, *, message: str) -> None:
        expected_str = pprint.pformat(expected, width=120)
        actual_str = pprint.pformat(actual, width=120)
        diff = "\n".join(
            difflib.unified_diff(
                expected_str.splitlines(),
                actual_str.splitlines(),
                fromfile="expected",
                tofile="actual",
                lineterm="",
            )
        )
        assert expected == actual, (
            f"{message}\nExpected:\n{expected_str}\nActual:\n{actual_str}\nDiff:\n{diff}"
        )

    return _assert
