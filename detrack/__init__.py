"""
detrack - Detection Post-Processing & Multi-Object Tracking
===========================================================

Post-procesamiento de detectores tipo YOLO sobre edge:
output tensor → candidatos → NMS → tracks con identidad estable.

Public API:
- AnchorDecoder, CropRect: decode del output tensor
- NMSFilter, non_max_suppression: supresión de duplicados
- Tracker, Track: tracking greedy por IoU
- DetectionPipeline: orquestación por frame
- DetrackConfig: configuración validada (Pydantic)

Usage:
    from detrack import DetectionPipeline, DetrackConfig, CropRect

    config = DetrackConfig.from_yaml("config/detrack/config.yaml")
    pipeline = DetectionPipeline.from_config(config, labels, tensor_shape=(1, 10647, 85))
    result = pipeline.process(output_tensor, CropRect.full_image(416, 416))
"""

__version__ = "1.0.0"

from .errors import DetrackError, InvalidInputError, ConfigurationError
from .config import DetrackConfig
from .inference import (
    AnchorDecoder,
    BoundingBox,
    CropRect,
    NMSFilter,
    calculate_iou,
    non_max_suppression,
    read_labels,
)
from .tracking import Track, Tracker
from .pipeline import DetectionPipeline, FrameResult

__all__ = [
    # Errors
    "DetrackError",
    "InvalidInputError",
    "ConfigurationError",
    # Config
    "DetrackConfig",
    # Inference post-processing
    "AnchorDecoder",
    "BoundingBox",
    "CropRect",
    "NMSFilter",
    "calculate_iou",
    "non_max_suppression",
    "read_labels",
    # Tracking
    "Track",
    "Tracker",
    # Pipeline
    "DetectionPipeline",
    "FrameResult",
]
