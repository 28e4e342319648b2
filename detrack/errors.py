"""
Error Taxonomy
==============

Excepciones del pipeline de post-procesamiento.

- InvalidInputError: tensor mal formado, label list corta, detecciones inválidas.
  Fail fast, se propaga al caller sin output parcial.
- ConfigurationError: thresholds o tamaños sin sentido, rechazados al construir.

Ambas heredan de ValueError para que el código que ya captura ValueError
(p.ej. validadores de Pydantic) siga funcionando.
"""


class DetrackError(Exception):
    """Base de todas las excepciones de detrack."""


class InvalidInputError(DetrackError, ValueError):
    """Input de un frame con forma o contenido inválido."""


class ConfigurationError(DetrackError, ValueError):
    """Parámetro de configuración fuera de rango."""


def require_unit_interval(name: str, value: float) -> float:
    """Valida que value esté en [0.0, 1.0]."""
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be in [0.0, 1.0], got {value}")
    return value


__all__ = [
    "DetrackError",
    "InvalidInputError",
    "ConfigurationError",
    "require_unit_interval",
]
