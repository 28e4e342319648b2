"""
Multi-Object Tracker
====================

Mantiene el set de tracks vivos y los actualiza frame a frame.

Algoritmo por frame (update):
1. pre_update() en todos los tracks
2. Asociación greedy max-IoU (GreedyIoUMatcher)
3. Tracks matcheados → update(bbox)
4. Tracks sin match → update_no_det()
5. Detecciones sin match → nuevo Track con ID fresco
6. Evicción: tracks con undetected_count > max_undetected

Ejemplo (max_undetected=2):

Frame 1: person → CREATE track 0 (detected=1)
Frame 2: person → UPDATE track 0 (detected=2)
Frame 3: (nada) → MISS 1/2
Frame 4: (nada) → MISS 2/2
Frame 5: (nada) → EVICTED (3 > 2)

IDs:
- Monótonos durante toda la vida del proceso
- reset() limpia tracks pero NO reinicia el contador (evita colisiones
  con IDs cacheados afuera)

Concurrency:
- Single-threaded. Frames en orden temporal estricto.
- Todo input se valida y la asociación se planifica antes de mutar tracks
  (un frame inválido no deja el tracker a medio actualizar).
"""

from typing import Any, Dict, List, Optional, Sequence
import logging

from ..errors import ConfigurationError, InvalidInputError, require_unit_interval
from ..inference.geometry import BoundingBox
from .matching import GreedyIoUMatcher
from .smoothing import SmoothingStrategy
from .track import DEFAULT_HISTORY_SIZE, Track


logger = logging.getLogger(__name__)


class Tracker:
    """
    Tracker IoU greedy sin modelo de movimiento.
    """

    def __init__(
        self,
        iou_threshold: float = 0.3,
        max_undetected: int = 2,
        history_size: int = DEFAULT_HISTORY_SIZE,
        smoothing: Optional[SmoothingStrategy] = None,
        match_same_class: bool = False,
        min_confidence_to_create: float = 0.0,
    ):
        """
        Args:
            iou_threshold: IoU mínimo (exclusivo) para asociar detección a track
            max_undetected: Misses consecutivos tolerados antes de eliminar
            history_size: Capacidad de la historia de cada track
            smoothing: Estrategia de suavizado compartida por los tracks
            match_same_class: Solo asociar detecciones de la misma clase
            min_confidence_to_create: Confidence mínima para crear un track nuevo

        Raises:
            ConfigurationError: Si algún parámetro está fuera de rango
        """
        if max_undetected < 0:
            raise ConfigurationError(f"max_undetected must be >= 0, got {max_undetected}")
        if history_size < 1:
            raise ConfigurationError(f"history_size must be >= 1, got {history_size}")
        require_unit_interval("min_confidence_to_create", min_confidence_to_create)

        self.max_undetected = max_undetected
        self.history_size = history_size
        self.min_confidence_to_create = min_confidence_to_create
        self._smoothing = smoothing
        self._matcher = GreedyIoUMatcher(
            iou_threshold=iou_threshold,
            match_same_class=match_same_class,
        )

        self._tracks: List[Track] = []
        self._next_id = 0

        # Stats
        self._stats = {
            'frames_processed': 0,
            'total_created': 0,
            'total_removed': 0,
        }

        logger.info(
            f"Tracker initialized: iou_threshold={iou_threshold:.2f}, "
            f"max_undetected={max_undetected}, history_size={history_size}, "
            f"match_same_class={match_same_class}"
        )

    @property
    def iou_threshold(self) -> float:
        return self._matcher.iou_threshold

    def update(self, detections: Sequence[BoundingBox]) -> List[Track]:
        """
        Procesa las detecciones (post-NMS) de un frame.

        Args:
            detections: Detecciones filtradas del frame actual

        Returns:
            Snapshot de tracks vivos (orden de creación)

        Raises:
            InvalidInputError: Si alguna detección no es un BoundingBox
        """
        detections = list(detections)
        for i, detection in enumerate(detections):
            if not isinstance(detection, BoundingBox):
                raise InvalidInputError(
                    f"Detection {i} is {type(detection).__name__}, expected BoundingBox"
                )

        # Plan (sin side effects)
        association = self._matcher.associate(self._tracks, detections)

        # Commit
        for track in self._tracks:
            track.pre_update()

        for track_idx, det_idx in association.matches:
            self._tracks[track_idx].update(detections[det_idx])

        for track_idx in association.unmatched_tracks:
            self._tracks[track_idx].update_no_det()

        created = 0
        for det_idx in association.unmatched_detections:
            detection = detections[det_idx]
            if detection.confidence < self.min_confidence_to_create:
                continue
            self._tracks.append(self._create_track(detection))
            created += 1

        removed = self._evict_stale_tracks()

        self._stats['frames_processed'] += 1
        self._stats['total_created'] += created
        self._stats['total_removed'] += removed

        logger.debug(
            f"Tracker update: {len(detections)} detections → {len(self._tracks)} tracks",
            extra={
                "component": "tracker",
                "event": "tracker_updated",
                "matched": len(association.matches),
                "created": created,
                "removed": removed,
                "active_tracks": len(self._tracks),
            }
        )

        return self.get_track_list()

    def _create_track(self, detection: BoundingBox) -> Track:
        track = Track(
            track_id=self._next_id,
            bbox=detection,
            history_size=self.history_size,
            smoothing=self._smoothing,
        )
        self._next_id += 1
        return track

    def _evict_stale_tracks(self) -> int:
        alive = []
        for track in self._tracks:
            if track.get_undetected_count() > self.max_undetected:
                logger.debug(
                    f"Track {track.id} evicted",
                    extra={
                        "component": "tracker",
                        "event": "track_evicted",
                        "track_id": track.id,
                        "detected_count": track.get_detected_count(),
                    }
                )
                continue
            alive.append(track)

        removed = len(self._tracks) - len(alive)
        self._tracks = alive
        return removed

    def reset(self):
        """Elimina todos los tracks. El contador de IDs continúa."""
        removed = len(self._tracks)
        self._tracks = []
        self._stats['total_removed'] += removed
        logger.info(f"Tracker reset: {removed} tracks removed, next_id={self._next_id}")

    def get_track_list(self) -> List[Track]:
        """Snapshot de tracks vivos en orden de creación."""
        return list(self._tracks)

    def get_confirmed_tracks(self, min_detected: int = 1) -> List[Track]:
        return [t for t in self._tracks if t.is_confirmed(min_detected)]

    @property
    def next_id(self) -> int:
        return self._next_id

    def get_stats(self) -> Dict[str, Any]:
        """
        Retorna estadísticas del tracker.

        Returns:
            Dict con: active_tracks, total_created, total_removed, frames_processed
        """
        stats = dict(self._stats)
        stats['active_tracks'] = len(self._tracks)
        return stats
