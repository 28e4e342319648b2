"""
Bounding Box Geometry
=====================

Bounded Context: Shape Algebra (geometría de detecciones)

This module contains the bounding box value type shared by decoder, NMS and tracker:
- BoundingBox dataclass (class id, label, confidence, rectángulo en píxeles)
- IoU (Intersection over Union) calculation

Rectangle semantics:
- Half-open: el box cubre [x, x + width) × [y, y + height)
- Coordenadas enteras en píxeles de la imagen original
- Dos boxes que solo se tocan en un borde tienen IoU 0.0

Design:
- Pure functions (no side effects)
- Zero external dependencies (pure Python, boxes por frame son pocos)
- Property-testable (simetría, bounds, identidad)
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class BoundingBox:
    """
    Detección en coordenadas de píxel.

    Attributes:
        class_id: Índice de clase (argmax del modelo)
        label: Nombre de clase (label_list[class_id])
        confidence: Score de la clase ganadora [0.0, 1.0]
        x, y: Top-left corner
        width, height: Tamaño en píxeles (> 0 al salir del decoder)
    """
    class_id: int
    label: str
    confidence: float
    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        """Borde derecho (exclusivo)"""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Borde inferior (exclusivo)"""
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def center(self) -> tuple:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def copy(self) -> 'BoundingBox':
        return BoundingBox(**asdict(self))

    def to_record(self) -> Dict[str, Any]:
        """
        Formato de export: {class_id, label, confidence, x, y, w, h}.
        """
        return {
            "class_id": self.class_id,
            "label": self.label,
            "confidence": float(self.confidence),
            "x": self.x,
            "y": self.y,
            "w": self.width,
            "h": self.height,
        }


def calculate_iou(bbox1: BoundingBox, bbox2: BoundingBox) -> float:
    """
    Calcula Intersection over Union (IoU) entre dos bounding boxes.

    Properties (matemáticas):
    - Simetría: IoU(A, B) = IoU(B, A)
    - Bounded: 0.0 <= IoU <= 1.0
    - Identidad: IoU(A, A) = 1.0 (si area > 0)
    - Disjoint: IoU(A, B) = 0.0 si no hay overlap

    Args:
        bbox1: BoundingBox en píxeles (top-left + size)
        bbox2: BoundingBox en píxeles (top-left + size)

    Returns:
        IoU score [0.0, 1.0]

    Example:
        >>> a = BoundingBox(0, 'person', 0.9, x=0, y=0, width=10, height=10)
        >>> b = BoundingBox(0, 'person', 0.8, x=5, y=0, width=10, height=10)
        >>> calculate_iou(a, b)  # 50 / 150
        0.3333333333333333
    """
    inter_x_min = max(bbox1.x, bbox2.x)
    inter_y_min = max(bbox1.y, bbox2.y)
    inter_x_max = min(bbox1.x2, bbox2.x2)
    inter_y_max = min(bbox1.y2, bbox2.y2)

    # Sin overlap (o solo borde compartido)
    if inter_x_max <= inter_x_min or inter_y_max <= inter_y_min:
        return 0.0

    inter_area = (inter_x_max - inter_x_min) * (inter_y_max - inter_y_min)
    union_area = bbox1.area + bbox2.area - inter_area

    # Edge case: boxes de tamaño 0 o negativo
    if union_area <= 0:
        return 0.0

    return inter_area / union_area
