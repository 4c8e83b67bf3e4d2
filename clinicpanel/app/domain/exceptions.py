# domain/exceptions.py
"""
Excepciones del cliente.

Propósito:
- Distinguir errores de programación/configuración (dominio) de fallos de red.
- Los fallos de red nunca llegan a la UI como excepción: el controlador los
  traduce a un mensaje en su ranura de error.
"""


class DomainError(Exception):
    """Error base del dominio."""


class ValidationError(DomainError):
    """Configuración o dato en estado inválido."""


class OperacionNoPermitidaError(DomainError):
    """El recurso no admite la operación solicitada (p. ej., editar inventario)."""


class ErrorApi(Exception):
    """Error base de la capa de acceso a la API REST."""


class ErrorConexion(ErrorApi):
    """Fallo de transporte: red caída, timeout o cuerpo no decodificable."""
