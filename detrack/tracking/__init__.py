"""
Multi-Object Tracking
=====================

Public API:
- Tracker: set de tracks vivos, asociación greedy IoU, evicción
- Track, TrackRecord: historia por objeto (ring buffer)
- TrackSnapshot: estado congelado de un track por frame
- GreedyIoUMatcher: asociación track ↔ detección (reutilizable)
- Smoothing: PassThroughSmoothing, ExponentialSmoothing, create_smoothing_strategy
"""
from .smoothing import (
    SmoothingStrategy,
    PassThroughSmoothing,
    ExponentialSmoothing,
    create_smoothing_strategy,
)
from .track import Track, TrackRecord, TrackSnapshot
from .matching import AssociationResult, GreedyIoUMatcher
from .tracker import Tracker

__all__ = [
    "Tracker",
    "Track",
    "TrackRecord",
    "TrackSnapshot",
    "GreedyIoUMatcher",
    "AssociationResult",
    "SmoothingStrategy",
    "PassThroughSmoothing",
    "ExponentialSmoothing",
    "create_smoothing_strategy",
]
