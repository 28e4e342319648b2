"""
Detection Pipeline
==================

Orquestación por frame: output tensor → decode → NMS → tracker.update.

Responsabilidad:
- Ejecutar las 3 etapas en orden, secuencialmente (single-threaded)
- Medir tiempo por etapa (ms)
- Trace por frame (trace_id propagado a todos los logs del frame)
- Formatear el resultado como mensaje JSON-ready

Error handling:
- Cualquier error aborta el frame (sin resultado parcial) y se propaga
- El tracker es all-or-nothing: un frame inválido no lo corrompe
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
import logging
import time

from .config import DetrackConfig
from .errors import DetrackError
from .inference import AnchorDecoder, BoundingBox, CropRect, NMSFilter
from .logging import (
    generate_trace_id,
    log_error_with_context,
    log_pipeline_metrics,
    log_tracker_stats,
    trace_context,
)
from .tracking import Tracker, TrackSnapshot, create_smoothing_strategy


logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """
    Resultado de un frame post-procesado.

    tracks guarda snapshots congelados: el mensaje describe siempre este frame,
    aunque el tracker ya haya procesado frames posteriores.
    """
    frame_id: int
    detections: List[BoundingBox]
    tracks: List[TrackSnapshot]
    crop: CropRect
    candidate_count: int = 0
    time_decode_ms: float = 0.0
    time_nms_ms: float = 0.0
    time_track_ms: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    def to_message(self, confirmed_only_min: int = 1) -> Dict[str, Any]:
        """
        Mensaje JSON-ready del frame.

        Args:
            confirmed_only_min: Solo exporta tracks con al menos este número de frames detectados
        """
        tracks = [t.to_record() for t in self.tracks if t.is_confirmed(confirmed_only_min)]
        return {
            "timestamp": self.timestamp.isoformat(),
            "frame_id": self.frame_id,
            "crop": {
                "x": self.crop.x,
                "y": self.crop.y,
                "width": self.crop.width,
                "height": self.crop.height,
            },
            "candidate_count": self.candidate_count,
            "detection_count": len(self.detections),
            "detections": [d.to_record() for d in self.detections],
            "track_count": len(tracks),
            "tracks": tracks,
            "timing_ms": {
                "decode": round(self.time_decode_ms, 3),
                "nms": round(self.time_nms_ms, 3),
                "track": round(self.time_track_ms, 3),
            },
        }


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class DetectionPipeline:
    """
    Pipeline de post-procesamiento de detección + tracking.

    Usage:
        pipeline = DetectionPipeline.from_config(config, labels, tensor_shape=(1, 10647, 85))
        crop = CropRect.fit_aspect(1280, 720, 416, 416)
        result = pipeline.process(output_tensor, crop)
    """

    def __init__(
        self,
        decoder: AnchorDecoder,
        nms: NMSFilter,
        tracker: Tracker,
        min_detected_to_confirm: int = 1,
    ):
        self.decoder = decoder
        self.nms = nms
        self.tracker = tracker
        self.min_detected_to_confirm = min_detected_to_confirm
        self._frame_count = 0

    @classmethod
    def from_config(
        cls,
        config: DetrackConfig,
        labels: Sequence[str],
        tensor_shape: Sequence[int],
    ) -> 'DetectionPipeline':
        """
        Construye decoder, NMS y tracker a partir de la config validada.

        Args:
            config: DetrackConfig validado
            labels: Label list del modelo
            tensor_shape: Dimensiones del output tensor (recupera anchors y clases)
        """
        decoder = AnchorDecoder.from_tensor_shape(
            tensor_shape,
            labels=labels,
            score_threshold=config.decoder.score_threshold,
        )
        nms = NMSFilter(
            iou_threshold=config.nms.iou_threshold,
            class_agnostic=config.nms.class_agnostic,
        )
        tracker_cfg = config.tracker
        tracker = Tracker(
            iou_threshold=tracker_cfg.iou_threshold,
            max_undetected=tracker_cfg.max_undetected,
            history_size=tracker_cfg.history_size,
            smoothing=create_smoothing_strategy(
                tracker_cfg.smoothing.mode,
                tracker_cfg.smoothing.alpha,
            ),
            match_same_class=tracker_cfg.match_same_class,
            min_confidence_to_create=tracker_cfg.min_confidence_to_create,
        )

        logger.info(
            f"🔧 Pipeline listo: {decoder.num_anchors} anchors, {decoder.num_classes} clases",
            extra={
                "component": "detection_pipeline",
                "event": "pipeline_initialized",
                "score_threshold": decoder.score_threshold,
                "nms_iou_threshold": nms.iou_threshold,
                "tracker_iou_threshold": tracker.iou_threshold,
            }
        )
        return cls(decoder, nms, tracker, tracker_cfg.min_detected_to_confirm)

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def process(self, tensor, crop: CropRect, trace_id: Optional[str] = None) -> FrameResult:
        """
        Post-procesa un frame.

        Args:
            tensor: Output tensor del modelo (float, layout de anchors)
            crop: Región de la imagen original enviada al modelo
            trace_id: Trace ID del frame (si None, se genera uno)

        Returns:
            FrameResult con detecciones filtradas y snapshot de los tracks vivos

        Raises:
            InvalidInputError: Si el tensor o las detecciones son inválidos
        """
        frame_id = self._frame_count

        with trace_context(trace_id or generate_trace_id("frame")):
            try:
                t0 = time.perf_counter()
                candidates = self.decoder.decode(tensor, crop)
                time_decode = _elapsed_ms(t0)

                t0 = time.perf_counter()
                detections = self.nms.apply(candidates)
                time_nms = _elapsed_ms(t0)

                t0 = time.perf_counter()
                tracks = self.tracker.update(detections)
                time_track = _elapsed_ms(t0)
            except DetrackError as e:
                log_error_with_context(
                    logger,
                    "Frame post-processing failed",
                    exception=e,
                    component="detection_pipeline",
                    event="frame_failed",
                    frame_id=frame_id,
                )
                raise

            self._frame_count += 1

            log_pipeline_metrics(logger, frame_id, time_decode, time_nms, time_track)
            stats = self.tracker.get_stats()
            log_tracker_stats(
                logger,
                raw_count=len(candidates),
                filtered_count=len(detections),
                active_tracks=stats['active_tracks'],
                total_created=stats['total_created'],
                total_removed=stats['total_removed'],
            )

        return FrameResult(
            frame_id=frame_id,
            detections=detections,
            tracks=[t.snapshot() for t in tracks],
            crop=crop,
            candidate_count=len(candidates),
            time_decode_ms=time_decode,
            time_nms_ms=time_nms,
            time_track_ms=time_track,
        )

    def to_message(self, result: FrameResult) -> Dict[str, Any]:
        return result.to_message(confirmed_only_min=self.min_detected_to_confirm)

    def reset(self):
        """Resetea tracker (IDs continúan) y contador de frames."""
        self.tracker.reset()
        self._frame_count = 0
