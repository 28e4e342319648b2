"""
Inference Post-Processing
=========================

Public API:
- BoundingBox, calculate_iou: geometría compartida
- AnchorDecoder, CropRect: output tensor → candidatos
- NMSFilter, non_max_suppression: supresión de duplicados
- read_labels: carga de labels por clase
"""
from .geometry import BoundingBox, calculate_iou
from .decoder import AnchorDecoder, CropRect
from .nms import NMSFilter, non_max_suppression
from .labels import read_labels

__all__ = [
    "BoundingBox",
    "calculate_iou",
    "AnchorDecoder",
    "CropRect",
    "NMSFilter",
    "non_max_suppression",
    "read_labels",
]
