"""
Track
=====

Historia temporal de un objeto trackeado + contadores de detección/miss.

Lifecycle (implícito en los contadores, las decisiones las toma el Tracker):
1. TENTATIVE: recién creado, pocos frames detectado
2. CONFIRMED: cnt_detected alcanzó el mínimo configurado
3. EVICTED: cnt_undetected superó el threshold del Tracker

Por frame: pre_update() → update(bbox) | update_no_det()

History:
- Ring buffer (deque con maxlen): los registros más viejos se descartan
- Cada registro guarda box suavizado, box raw y flag is_detected
- Sin predicción de movimiento: un miss repite el último box conocido
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional

from ..errors import ConfigurationError
from ..inference.geometry import BoundingBox
from .smoothing import PassThroughSmoothing, SmoothingStrategy


DEFAULT_HISTORY_SIZE = 50


@dataclass(frozen=True)
class TrackSnapshot:
    """
    Estado congelado de un track al cierre de un frame.

    El Track sigue mutando en frames posteriores; el snapshot no.
    """
    id: int
    bbox: BoundingBox
    cnt_detected: int
    cnt_undetected: int

    def get_latest_bounding_box(self) -> BoundingBox:
        return self.bbox

    def get_detected_count(self) -> int:
        return self.cnt_detected

    def get_undetected_count(self) -> int:
        return self.cnt_undetected

    def is_confirmed(self, min_detected: int = 1) -> bool:
        return self.cnt_detected >= min_detected

    def to_record(self) -> Dict[str, Any]:
        record = {"id": self.id}
        record.update(self.bbox.to_record())
        return record


@dataclass
class TrackRecord:
    """Registro de un frame en la historia del track."""
    bbox: BoundingBox
    bbox_raw: BoundingBox
    is_detected: bool


class Track:
    """
    Un objeto físico a lo largo de los frames.

    Owned exclusivamente por un Tracker; no compartir entre trackers.
    """

    def __init__(
        self,
        track_id: int,
        bbox: BoundingBox,
        history_size: int = DEFAULT_HISTORY_SIZE,
        smoothing: Optional[SmoothingStrategy] = None,
    ):
        """
        Args:
            track_id: ID único (asignado por el Tracker)
            bbox: Detección que origina el track (cuenta como primer frame detectado)
            history_size: Capacidad del ring buffer de historia
            smoothing: Estrategia para el box suavizado (default: pass-through)
        """
        if history_size < 1:
            raise ConfigurationError(f"history_size must be >= 1, got {history_size}")

        self.id = track_id
        self._smoothing = smoothing or PassThroughSmoothing()
        self._history: Deque[TrackRecord] = deque(maxlen=history_size)
        self._provisional = False

        self._history.append(TrackRecord(
            bbox=self._smoothing.smooth(None, bbox),
            bbox_raw=bbox.copy(),
            is_detected=True,
        ))
        self.cnt_detected = 1
        self.cnt_undetected = 0

    def pre_update(self):
        """Marca el frame actual como no resuelto (falta update o update_no_det)."""
        self._provisional = True

    def update(self, bbox: BoundingBox):
        """Frame con detección matcheada."""
        smoothed = self._smoothing.smooth(self.get_latest_bounding_box(), bbox)
        self._history.append(TrackRecord(
            bbox=smoothed,
            bbox_raw=bbox.copy(),
            is_detected=True,
        ))
        self.cnt_detected += 1
        self.cnt_undetected = 0
        self._provisional = False

    def update_no_det(self):
        """Frame sin detección: repite el último box conocido."""
        latest = self._history[-1]
        self._history.append(TrackRecord(
            bbox=latest.bbox.copy(),
            bbox_raw=latest.bbox_raw.copy(),
            is_detected=False,
        ))
        self.cnt_undetected += 1
        self._provisional = False

    def get_latest_bounding_box(self) -> BoundingBox:
        return self._history[-1].bbox

    def get_track_history(self) -> Deque[TrackRecord]:
        return self._history

    def get_undetected_count(self) -> int:
        return self.cnt_undetected

    def get_detected_count(self) -> int:
        return self.cnt_detected

    @property
    def is_provisional(self) -> bool:
        return self._provisional

    def is_confirmed(self, min_detected: int = 1) -> bool:
        """Madurez implícita: detectado al menos min_detected frames."""
        return self.cnt_detected >= min_detected

    def to_record(self) -> Dict[str, Any]:
        """Export: {id, class_id, label, confidence, x, y, w, h} del último box."""
        record = {"id": self.id}
        record.update(self.get_latest_bounding_box().to_record())
        return record

    def snapshot(self) -> TrackSnapshot:
        """Copia inmutable del estado actual (último box + contadores)."""
        return TrackSnapshot(
            id=self.id,
            bbox=self.get_latest_bounding_box().copy(),
            cnt_detected=self.cnt_detected,
            cnt_undetected=self.cnt_undetected,
        )

    def __repr__(self) -> str:
        return (
            f"Track(id={self.id}, detected={self.cnt_detected}, "
            f"undetected={self.cnt_undetected}, bbox={self.get_latest_bounding_box()})"
        )
