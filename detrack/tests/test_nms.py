"""
NMS Tests
=========

Invariantes testeadas:
1. Idempotencia: NMS(NMS(L)) == NMS(L)
2. Ningún par del output con IoU > threshold
3. Se conserva el box de mayor confidence de cada cluster
4. Supresión global entre clases (default) vs por clase
5. Lista vacía → lista vacía
"""
import random

import pytest

from detrack.errors import ConfigurationError
from detrack.inference.geometry import BoundingBox, calculate_iou
from detrack.inference.nms import NMSFilter, non_max_suppression


def make_box(x, y, width, height, confidence, class_id=0):
    return BoundingBox(
        class_id=class_id,
        label=f"class_{class_id}",
        confidence=confidence,
        x=x,
        y=y,
        width=width,
        height=height,
    )


def random_boxes(seed, count=60):
    rng = random.Random(seed)
    return [
        make_box(
            rng.randint(0, 200),
            rng.randint(0, 200),
            rng.randint(10, 80),
            rng.randint(10, 80),
            round(rng.random(), 3),
            class_id=rng.randint(0, 2),
        )
        for _ in range(count)
    ]


@pytest.mark.unit
@pytest.mark.nms
class TestNMSScenarios:

    def test_heavy_overlap_keeps_most_confident(self):
        """
        Escenario: 2 boxes con IoU=0.9, conf 0.9 y 0.8, threshold 0.5
        → solo queda el de 0.9.
        """
        high = make_box(0, 0, 100, 100, 0.9)
        low = make_box(0, 0, 100, 90, 0.8)
        assert calculate_iou(high, low) == pytest.approx(0.9)

        kept = non_max_suppression([low, high], iou_threshold=0.5)

        assert kept == [high]

    def test_empty_input(self):
        assert non_max_suppression([]) == []
        assert NMSFilter().apply([]) == []

    def test_disjoint_boxes_all_kept_sorted(self):
        a = make_box(0, 0, 10, 10, 0.3)
        b = make_box(100, 0, 10, 10, 0.9)
        c = make_box(200, 0, 10, 10, 0.6)

        kept = non_max_suppression([a, b, c])

        assert kept == [b, c, a]

    def test_iou_equal_threshold_not_suppressed(self):
        """
        Solo se suprime IoU estrictamente mayor al threshold.
        """
        a = make_box(0, 0, 100, 100, 0.9)
        b = make_box(0, 0, 100, 50, 0.8)
        assert calculate_iou(a, b) == pytest.approx(0.5)

        assert len(non_max_suppression([a, b], iou_threshold=0.5)) == 2

    def test_equal_confidence_keeps_first(self):
        """
        Sort stable: ante empate de confidence gana el orden original.
        """
        first = make_box(0, 0, 100, 100, 0.7)
        second = make_box(1, 1, 100, 100, 0.7)

        assert non_max_suppression([first, second]) == [first]
        assert non_max_suppression([second, first]) == [second]

    def test_suppression_is_global_across_classes(self):
        person = make_box(0, 0, 100, 100, 0.9, class_id=0)
        car = make_box(0, 0, 100, 95, 0.8, class_id=1)

        assert non_max_suppression([person, car]) == [person]

    def test_per_class_mode_keeps_other_classes(self):
        person = make_box(0, 0, 100, 100, 0.9, class_id=0)
        car = make_box(0, 0, 100, 95, 0.8, class_id=1)
        person_dup = make_box(0, 0, 100, 95, 0.7, class_id=0)

        kept = NMSFilter(iou_threshold=0.5, class_agnostic=False).apply([person, car, person_dup])

        assert kept == [person, car]

    def test_input_not_mutated(self):
        boxes = [make_box(0, 0, 100, 90, 0.8), make_box(0, 0, 100, 100, 0.9)]
        original = list(boxes)

        non_max_suppression(boxes)

        assert boxes == original


@pytest.mark.unit
@pytest.mark.nms
class TestNMSProperties:

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_idempotence(self, seed):
        """
        Invariante: NMS(NMS(L)) == NMS(L).
        """
        nms = NMSFilter(iou_threshold=0.5)
        once = nms.apply(random_boxes(seed))

        assert nms.apply(once) == once

    @pytest.mark.parametrize("threshold", [0.1, 0.3, 0.5, 0.8])
    def test_no_pair_above_threshold(self, threshold):
        """
        Invariante: ningún par del output tiene IoU > threshold.
        """
        kept = non_max_suppression(random_boxes(11), iou_threshold=threshold)

        for i in range(len(kept)):
            for j in range(i + 1, len(kept)):
                assert calculate_iou(kept[i], kept[j]) <= threshold

    def test_output_sorted_by_confidence(self):
        kept = non_max_suppression(random_boxes(5))
        confidences = [b.confidence for b in kept]

        assert confidences == sorted(confidences, reverse=True)

    def test_most_confident_always_kept(self):
        boxes = random_boxes(9)
        best = max(boxes, key=lambda b: b.confidence)

        assert non_max_suppression(boxes)[0].confidence == best.confidence


@pytest.mark.unit
@pytest.mark.nms
class TestNMSConfiguration:

    @pytest.mark.parametrize("threshold", [-0.5, 1.01])
    def test_invalid_threshold_rejected(self, threshold):
        with pytest.raises(ConfigurationError):
            NMSFilter(iou_threshold=threshold)

    def test_filter_is_callable(self):
        nms = NMSFilter()
        boxes = [make_box(0, 0, 10, 10, 0.5)]

        assert nms(boxes) == boxes
