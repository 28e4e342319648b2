"""
Anchor Decoder
==============

Bounded Context: Tensor Decoding (output del modelo → candidatos)

Convierte el output tensor de un detector tipo YOLO (un slot por anchor) en
una lista de BoundingBox candidatos en coordenadas de la imagen original.

Layout por anchor (coordenadas normalizadas 0.0-1.0):
    cx, cy, w, h, objectness, p_0 ... p_{C-1}

Algoritmo:
1. Skip anchor si objectness < threshold
2. class_id = argmax(p) (primer índice gana empates), confidence = p[class_id]
3. Skip si confidence <= threshold
4. Mapear a píxeles vía crop rect (truncation, nunca rounding)

Performance:
- Filtrado vectorizado con NumPy (miles de anchors por frame)
- Solo los anchors que pasan el threshold se convierten a BoundingBox
- El tensor se lee como view (sin copia si ya es float32), nunca se retiene
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging
import math

import numpy as np

from ..errors import ConfigurationError, InvalidInputError, require_unit_interval
from .geometry import BoundingBox


logger = logging.getLogger(__name__)

# x, y, w, h, objectness
ANCHOR_BOX_ELEMENTS = 5


@dataclass(frozen=True)
class CropRect:
    """
    Región de la imagen original que se envió al modelo.

    Attributes:
        x, y: Top-left del crop en la imagen original
        width, height: Tamaño del crop en píxeles
    """
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def full_image(cls, image_width: int, image_height: int) -> 'CropRect':
        return cls(x=0, y=0, width=image_width, height=image_height)

    @classmethod
    def fit_aspect(
        cls,
        image_width: int,
        image_height: int,
        input_width: int,
        input_height: int,
    ) -> 'CropRect':
        """
        Crop centrado con el aspect ratio del input del modelo.

        Recorta la dimensión sobrante (la imagen nunca se distorsiona al hacer resize).

        Args:
            image_width, image_height: Tamaño de la imagen original
            input_width, input_height: Tamaño del input tensor del modelo

        Returns:
            CropRect centrado (tamaños y offsets truncados a int)

        Example:
            >>> CropRect.fit_aspect(640, 480, 416, 416)
            CropRect(x=80, y=0, width=480, height=480)
        """
        if min(image_width, image_height, input_width, input_height) <= 0:
            raise InvalidInputError(
                f"Image and input sizes must be positive, got image={image_width}x{image_height}, "
                f"input={input_width}x{input_height}"
            )

        aspect_ratio_img = image_width / image_height
        aspect_ratio_tensor = input_width / input_height

        crop_x, crop_y = 0, 0
        crop_w, crop_h = image_width, image_height
        if aspect_ratio_img > aspect_ratio_tensor:
            crop_w = int(aspect_ratio_tensor * image_height)
            crop_x = (image_width - crop_w) // 2
        else:
            crop_h = int(image_width / aspect_ratio_tensor)
            crop_y = (image_height - crop_h) // 2

        return cls(x=crop_x, y=crop_y, width=crop_w, height=crop_h)


class AnchorDecoder:
    """
    Decoder de anchors → BoundingBox candidatos.

    Los constantes del modelo (anchors, clases, threshold) son configuración
    explícita, lo que permite reutilizarlo con distintos modelos y testear con
    tensores sintéticos pequeños.
    """

    def __init__(
        self,
        num_anchors: int,
        num_classes: int,
        labels: Sequence[str],
        score_threshold: float = 0.2,
    ):
        """
        Args:
            num_anchors: Cantidad de anchors del output tensor
            num_classes: Cantidad de clases (C)
            labels: Nombre por índice de clase (len >= num_classes)
            score_threshold: Threshold T para objectness y confidence

        Raises:
            ConfigurationError: Si los tamaños o el threshold no tienen sentido
            InvalidInputError: Si labels es más corta que num_classes
        """
        if num_anchors < 1:
            raise ConfigurationError(f"num_anchors must be >= 1, got {num_anchors}")
        if num_classes < 1:
            raise ConfigurationError(f"num_classes must be >= 1, got {num_classes}")
        require_unit_interval("score_threshold", score_threshold)

        if len(labels) < num_classes:
            raise InvalidInputError(
                f"Label list has {len(labels)} entries but the model has {num_classes} classes"
            )

        self.num_anchors = num_anchors
        self.num_classes = num_classes
        self.labels = list(labels)
        self.score_threshold = score_threshold

        logger.debug(
            "AnchorDecoder initialized",
            extra={
                "component": "anchor_decoder",
                "event": "decoder_initialized",
                "num_anchors": num_anchors,
                "num_classes": num_classes,
                "score_threshold": score_threshold,
            }
        )

    @classmethod
    def from_tensor_shape(
        cls,
        shape: Sequence[int],
        labels: Sequence[str],
        score_threshold: float = 0.2,
    ) -> 'AnchorDecoder':
        """
        Crea el decoder a partir de las dimensiones del output tensor.

        El último eje es 5 + C; el producto del resto es num_anchors.
        Ejemplo YOLOv5 416: (1, 10647, 85) → 10647 anchors, 80 clases.
        """
        if len(shape) < 2:
            raise InvalidInputError(f"Output tensor must have at least 2 dims, got shape {tuple(shape)}")
        if any(int(d) < 1 for d in shape):
            raise InvalidInputError(f"Output tensor dims must be positive, got shape {tuple(shape)}")

        elements = int(shape[-1])
        if elements <= ANCHOR_BOX_ELEMENTS:
            raise InvalidInputError(
                f"Last tensor dim must be > {ANCHOR_BOX_ELEMENTS} (box + objectness + classes), got {elements}"
            )

        num_anchors = int(math.prod(int(d) for d in shape[:-1]))
        return cls(
            num_anchors=num_anchors,
            num_classes=elements - ANCHOR_BOX_ELEMENTS,
            labels=labels,
            score_threshold=score_threshold,
        )

    @property
    def elements_per_anchor(self) -> int:
        return ANCHOR_BOX_ELEMENTS + self.num_classes

    @property
    def expected_size(self) -> int:
        return self.num_anchors * self.elements_per_anchor

    def _as_anchor_view(self, tensor) -> np.ndarray:
        """View read-only (num_anchors, 5 + C) del tensor, con tamaño validado."""
        try:
            data = np.asarray(tensor, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Tensor is not a numeric array: {e}") from e

        if data.size != self.expected_size:
            raise InvalidInputError(
                f"Tensor has {data.size} elements, expected {self.num_anchors} anchors × "
                f"{self.elements_per_anchor} = {self.expected_size}"
            )

        view = data.reshape(self.num_anchors, self.elements_per_anchor)
        view.flags.writeable = False
        return view

    def decode(self, tensor, crop: CropRect) -> List[BoundingBox]:
        """
        Decodifica un frame de output en BoundingBox candidatos.

        Args:
            tensor: Output del modelo (flat o (N, 5+C) / (1, N, 5+C)), float
            crop: Región de la imagen original que se envió al modelo

        Returns:
            Lista de candidatos (orden de anchors, puede tener overlap)

        Raises:
            InvalidInputError: Si el tamaño del tensor no coincide
        """
        anchors = self._as_anchor_view(tensor)
        threshold = self.score_threshold

        class_probs = anchors[:, ANCHOR_BOX_ELEMENTS:]
        # np.argmax retorna el primer índice ante empates
        class_ids = np.argmax(class_probs, axis=1)
        confidences = class_probs[np.arange(self.num_anchors), class_ids]

        keep = (anchors[:, 4] >= threshold) & (confidences > threshold)

        candidates = []
        dropped_empty = 0
        for idx in np.flatnonzero(keep):
            bbox = self._to_bounding_box(
                anchors[idx, :4],
                int(class_ids[idx]),
                float(confidences[idx]),
                crop,
            )
            if bbox is None:
                dropped_empty += 1
                continue
            candidates.append(bbox)

        if dropped_empty:
            logger.debug(
                f"Dropped {dropped_empty} zero-area candidates",
                extra={
                    "component": "anchor_decoder",
                    "event": "zero_area_dropped",
                    "count": dropped_empty,
                }
            )

        return candidates

    def _to_bounding_box(
        self,
        box: np.ndarray,
        class_id: int,
        confidence: float,
        crop: CropRect,
    ) -> Optional[BoundingBox]:
        """Normalized center+size → píxeles top-left+size (truncation)."""
        cx = float(box[0]) * crop.width + crop.x
        cy = float(box[1]) * crop.height + crop.y
        w = float(box[2]) * crop.width
        h = float(box[3]) * crop.height

        width = int(w)
        height = int(h)
        if width <= 0 or height <= 0:
            return None

        return BoundingBox(
            class_id=class_id,
            label=self.labels[class_id],
            confidence=confidence,
            x=int(cx - w / 2),
            y=int(cy - h / 2),
            width=width,
            height=height,
        )
