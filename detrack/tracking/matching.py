"""
Track ↔ Detection Association
=============================

Bounded Context: Spatial Matching (geometría de tracking)

Greedy one-to-one matching por IoU:
- Tracks en orden de creación
- Cada track toma la detección libre con mayor IoU (estrictamente > threshold)
- Empates: gana el primer índice de detección
- Una vez matcheados, track y detección salen de consideración

Greedy es una simplificación frente a asignación óptima (Hungarian); para
pocos objetos por frame el resultado es el mismo en la práctica.

Complejidad: O(T*D) con T=tracks, D=detecciones.
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple
import logging

from ..errors import require_unit_interval
from ..inference.geometry import BoundingBox, calculate_iou
from .track import Track


logger = logging.getLogger(__name__)


@dataclass
class AssociationResult:
    """Plan de asociación de un frame (índices, no muta nada)."""
    matches: List[Tuple[int, int]] = field(default_factory=list)  # (track_idx, det_idx)
    unmatched_tracks: List[int] = field(default_factory=list)
    unmatched_detections: List[int] = field(default_factory=list)


class GreedyIoUMatcher:
    """
    Matcher greedy max-IoU con threshold mínimo.

    Usage:
        matcher = GreedyIoUMatcher(iou_threshold=0.3)
        result = matcher.associate(tracks, detections)
    """

    def __init__(self, iou_threshold: float = 0.3, match_same_class: bool = False):
        """
        Args:
            iou_threshold: IoU mínimo (exclusivo) para considerar mismo objeto
            match_same_class: Si True, nunca matchea clases distintas
        """
        self.iou_threshold = require_unit_interval("iou_threshold", iou_threshold)
        self.match_same_class = match_same_class

    def similarity(self, track_bbox: BoundingBox, detection: BoundingBox) -> float:
        if self.match_same_class and track_bbox.class_id != detection.class_id:
            return 0.0
        return calculate_iou(track_bbox, detection)

    def associate(
        self,
        tracks: Sequence[Track],
        detections: Sequence[BoundingBox],
    ) -> AssociationResult:
        result = AssociationResult()
        used = [False] * len(detections)

        for track_idx, track in enumerate(tracks):
            track_bbox = track.get_latest_bounding_box()
            best_idx = -1
            best_iou = self.iou_threshold

            for det_idx, detection in enumerate(detections):
                if used[det_idx]:
                    continue
                iou = self.similarity(track_bbox, detection)
                if iou > best_iou:
                    best_iou = iou
                    best_idx = det_idx

            if best_idx < 0:
                result.unmatched_tracks.append(track_idx)
                continue

            used[best_idx] = True
            result.matches.append((track_idx, best_idx))
            logger.debug(
                "Match found",
                extra={
                    "component": "matching",
                    "event": "match_found",
                    "track_id": track.id,
                    "iou": best_iou,
                }
            )

        result.unmatched_detections = [i for i, u in enumerate(used) if not u]
        return result
