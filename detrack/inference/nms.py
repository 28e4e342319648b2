"""
Non-Maximum Suppression
=======================

Greedy NMS estándar sobre la lista de candidatos del decoder.

Algoritmo:
1. Sort por confidence descendente (stable: empates mantienen orden original)
2. Tomar el de mayor confidence, emitirlo
3. Suprimir todo candidato restante con IoU > threshold contra él
4. Repetir hasta vaciar la lista

Por defecto la supresión es global (class-agnostic): una sola lista combinada,
sin particionar por clase. Con class_agnostic=False solo se suprimen boxes de
la misma clase.

Properties:
- Idempotente: NMS(NMS(L)) == NMS(L)
- Ningún par del output tiene IoU > threshold
- Lista vacía → lista vacía
"""

from typing import List, Sequence
import logging

from ..errors import require_unit_interval
from .geometry import BoundingBox, calculate_iou


logger = logging.getLogger(__name__)


def non_max_suppression(
    candidates: Sequence[BoundingBox],
    iou_threshold: float = 0.5,
    class_agnostic: bool = True,
) -> List[BoundingBox]:
    """
    Filtra candidatos solapados, quedándose con el más confiable por cluster.

    Args:
        candidates: Lista de candidatos (cualquier orden)
        iou_threshold: IoU por encima del cual un candidato se suprime
        class_agnostic: Si False, solo compite contra boxes de su misma clase

    Returns:
        Detecciones filtradas, ordenadas por confidence descendente
    """
    # sorted() es stable
    ordered = sorted(candidates, key=lambda b: b.confidence, reverse=True)
    suppressed = [False] * len(ordered)
    kept = []

    for i, best in enumerate(ordered):
        if suppressed[i]:
            continue
        kept.append(best)

        for j in range(i + 1, len(ordered)):
            if suppressed[j]:
                continue
            other = ordered[j]
            if not class_agnostic and other.class_id != best.class_id:
                continue
            if calculate_iou(best, other) > iou_threshold:
                suppressed[j] = True

    return kept


class NMSFilter:
    """
    NMS configurado (threshold + modo de clases) para uso por frame.
    """

    def __init__(self, iou_threshold: float = 0.5, class_agnostic: bool = True):
        """
        Args:
            iou_threshold: IoU de supresión [0.0, 1.0] (default 0.5)
            class_agnostic: Supresión global entre clases (default True)

        Raises:
            ConfigurationError: Si iou_threshold está fuera de [0.0, 1.0]
        """
        self.iou_threshold = require_unit_interval("iou_threshold", iou_threshold)
        self.class_agnostic = class_agnostic

    def apply(self, candidates: Sequence[BoundingBox]) -> List[BoundingBox]:
        kept = non_max_suppression(
            candidates,
            iou_threshold=self.iou_threshold,
            class_agnostic=self.class_agnostic,
        )

        logger.debug(
            f"NMS: {len(candidates)} candidates → {len(kept)} detections",
            extra={
                "component": "nms",
                "event": "nms_applied",
                "candidates": len(candidates),
                "kept": len(kept),
            }
        )
        return kept

    __call__ = apply
