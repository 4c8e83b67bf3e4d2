from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from clinicpanel.app.application.ports.api_port import RespuestaApi
from clinicpanel.app.bootstrap_logging import get_logger, new_request_id
from clinicpanel.app.domain.exceptions import ErrorConexion

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


class HttpxApiClient:
    """Cliente REST asíncrono sobre ``httpx.AsyncClient``.

    - Construye ``{base_url}/api/{ruta}``.
    - Añade ``Authorization: Bearer <token>`` y un ``X-Request-ID`` por petición.
    - Devuelve cualquier status como ``RespuestaApi``; solo el transporte lanza.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, ruta: str) -> str:
        return f"{self._base_url}/api/{ruta.strip('/')}"

    async def request(
        self,
        method: str,
        ruta: str,
        *,
        token: str,
        json: Optional[Any] = None,
    ) -> RespuestaApi:
        request_id = new_request_id()
        headers = {"Authorization": f"Bearer {token}", "X-Request-ID": request_id}
        started = time.perf_counter()
        try:
            response = await self._ensure_client().request(method, self.url_for(ruta), headers=headers, json=json)
        except httpx.RequestError as exc:
            LOGGER.warning("api_transport_error method=%s ruta=%s error=%s", method, ruta, type(exc).__name__)
            raise ErrorConexion(f"{method} {ruta}: {type(exc).__name__}") from exc

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        LOGGER.info(
            "api_response method=%s ruta=%s status=%s elapsed_ms=%s",
            method,
            ruta,
            response.status_code,
            elapsed_ms,
        )
        return RespuestaApi(status_code=response.status_code, datos=_decode_body(response, method, ruta))

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client


def _decode_body(response: httpx.Response, method: str, ruta: str) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        if response.is_success:
            raise ErrorConexion(f"{method} {ruta}: respuesta no JSON") from exc
        # En errores el cuerpo solo es informativo.
        return response.text
