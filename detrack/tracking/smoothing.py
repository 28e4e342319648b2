"""
Box Smoothing Strategies
========================

Política para el box "suavizado" que Track.update() guarda junto al box raw.

Strategies:
- PassThroughSmoothing: identidad (smoothed == raw). Default.
- ExponentialSmoothing: alpha*raw + (1-alpha)*previous, por coordenada

class_id, label y confidence siempre vienen del box raw (la detección actual);
solo se suaviza la geometría.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..errors import ConfigurationError
from ..inference.geometry import BoundingBox


class SmoothingStrategy(ABC):
    """Base abstracta para estrategias de suavizado de boxes."""

    @abstractmethod
    def smooth(self, previous: Optional[BoundingBox], current: BoundingBox) -> BoundingBox:
        """
        Args:
            previous: Último box suavizado del track (None si es el primero)
            current: Box raw de la detección matcheada

        Returns:
            Nuevo BoundingBox suavizado (nunca muta los inputs)
        """
        pass

    def get_name(self) -> str:
        """Nombre de la strategy (para logging/debugging)."""
        return self.__class__.__name__


class PassThroughSmoothing(SmoothingStrategy):
    """Sin suavizado: el box guardado es el raw."""

    def smooth(self, previous: Optional[BoundingBox], current: BoundingBox) -> BoundingBox:
        return current.copy()


class ExponentialSmoothing(SmoothingStrategy):
    """
    Suavizado exponencial de la geometría.

    alpha = 1.0 equivale a pass-through; valores bajos dan boxes más estables
    pero con más lag. Coordenadas truncadas a int (igual que el decoder).
    """

    def __init__(self, alpha: float = 0.5):
        if not 0.0 < alpha <= 1.0:
            raise ConfigurationError(f"smoothing alpha must be in (0.0, 1.0], got {alpha}")
        self.alpha = alpha

    def smooth(self, previous: Optional[BoundingBox], current: BoundingBox) -> BoundingBox:
        if previous is None:
            return current.copy()

        alpha = self.alpha
        return BoundingBox(
            class_id=current.class_id,
            label=current.label,
            confidence=current.confidence,
            x=int(alpha * current.x + (1 - alpha) * previous.x),
            y=int(alpha * current.y + (1 - alpha) * previous.y),
            width=int(alpha * current.width + (1 - alpha) * previous.width),
            height=int(alpha * current.height + (1 - alpha) * previous.height),
        )


def create_smoothing_strategy(mode: str = 'none', alpha: float = 0.5) -> SmoothingStrategy:
    """
    Factory por nombre de modo ('none' | 'exponential').

    Raises:
        ConfigurationError: Si el modo no existe
    """
    if mode == 'none':
        return PassThroughSmoothing()
    if mode == 'exponential':
        return ExponentialSmoothing(alpha=alpha)
    raise ConfigurationError(f"Unknown smoothing mode: {mode}")
