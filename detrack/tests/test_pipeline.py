"""
Detection Pipeline Tests
========================

Frame end-to-end: tensor → decode → NMS → tracker.

Invariantes testeadas:
1. Duplicados del decoder se suprimen antes del tracking
2. Track IDs estables entre frames iguales
3. Frame inválido → error propagado, tracker intacto
4. Mensaje JSON-ready con tracks y detecciones
5. CLI replay emite un JSON por frame
"""
import json

import numpy as np
import pytest

from detrack import cli
from detrack.config import DetrackConfig
from detrack.errors import InvalidInputError
from detrack.inference import CropRect
from detrack.pipeline import DetectionPipeline

LABELS = ['person', 'car']


def make_frame():
    """
    3 anchors: dos solapados (misma persona) + un auto separado.
    Coordenadas en fracciones binarias exactas (sin ruido de float32).
    """
    return np.array([
        [0.25, 0.25, 0.25, 0.25, 0.9, 0.8, 0.1],
        [0.28125, 0.25, 0.25, 0.25, 0.9, 0.7, 0.1],
        [0.75, 0.75, 0.25, 0.25, 0.9, 0.1, 0.9],
    ], dtype=np.float32)


def make_pipeline(**tracker_overrides):
    config = DetrackConfig(tracker=tracker_overrides) if tracker_overrides else DetrackConfig()
    return DetectionPipeline.from_config(config, LABELS, tensor_shape=(1, 3, 7))


@pytest.mark.integration
class TestDetectionPipeline:

    def test_single_frame(self):
        pipeline = make_pipeline()

        result = pipeline.process(make_frame(), CropRect.full_image(100, 100))

        assert result.frame_id == 0
        assert result.candidate_count == 3
        assert [d.label for d in result.detections] == ['car', 'person']
        person = result.detections[1]
        assert (person.x, person.y, person.width, person.height) == (12, 12, 25, 25)
        assert len(result.tracks) == 2

    def test_track_ids_stable_across_frames(self):
        pipeline = make_pipeline()
        crop = CropRect.full_image(100, 100)

        first = pipeline.process(make_frame(), crop)
        ids = [t.id for t in first.tracks]

        for _ in range(3):
            result = pipeline.process(make_frame(), crop)

        assert [t.id for t in result.tracks] == ids
        assert all(t.get_detected_count() == 4 for t in result.tracks)
        assert pipeline.frame_count == 4

    def test_invalid_frame_does_not_touch_tracker(self):
        pipeline = make_pipeline()
        crop = CropRect.full_image(100, 100)
        pipeline.process(make_frame(), crop)
        stats_before = pipeline.tracker.get_stats()

        with pytest.raises(InvalidInputError):
            pipeline.process(np.zeros(5, dtype=np.float32), crop)

        assert pipeline.tracker.get_stats() == stats_before
        assert pipeline.frame_count == 1

    def test_empty_frames_evict_tracks(self):
        pipeline = make_pipeline(max_undetected=1)
        crop = CropRect.full_image(100, 100)
        empty = np.zeros((3, 7), dtype=np.float32)

        pipeline.process(make_frame(), crop)
        pipeline.process(empty, crop)
        result = pipeline.process(empty, crop)

        assert result.tracks == []
        assert result.detections == []

    def test_message_format(self):
        pipeline = make_pipeline()
        result = pipeline.process(make_frame(), CropRect.full_image(100, 100))

        message = json.loads(json.dumps(pipeline.to_message(result)))

        assert message['frame_id'] == 0
        assert message['detection_count'] == 2
        assert message['track_count'] == 2
        assert {t['id'] for t in message['tracks']} == {0, 1}
        assert set(message['tracks'][0]) == {'id', 'class_id', 'label', 'confidence', 'x', 'y', 'w', 'h'}
        assert message['crop'] == {'x': 0, 'y': 0, 'width': 100, 'height': 100}

    def test_message_describes_its_own_frame(self):
        """
        Invariante: el resultado de un frame no cambia cuando el tracker
        procesa frames posteriores.
        """
        pipeline = make_pipeline()
        crop = CropRect.full_image(100, 100)
        moved = make_frame()
        moved[:, 0] += 0.0625

        first = pipeline.process(make_frame(), crop)
        second = pipeline.process(moved, crop)

        first_tracks = {t["id"]: t for t in pipeline.to_message(first)["tracks"]}
        second_tracks = {t["id"]: t for t in pipeline.to_message(second)["tracks"]}
        assert first_tracks.keys() == second_tracks.keys()
        assert sorted(t["x"] for t in first_tracks.values()) == [12, 62]
        assert sorted(t["x"] for t in second_tracks.values()) == [18, 68]
        assert all(t.get_detected_count() == 1 for t in first.tracks)
        assert all(t.get_detected_count() == 2 for t in second.tracks)

    def test_message_counts_candidates(self):
        pipeline = make_pipeline()

        message = pipeline.to_message(pipeline.process(make_frame(), CropRect.full_image(100, 100)))

        assert message["candidate_count"] == 3
        assert message["detection_count"] == 2

    def test_message_only_confirmed_tracks(self):
        pipeline = make_pipeline(min_detected_to_confirm=2)
        crop = CropRect.full_image(100, 100)

        first = pipeline.to_message(pipeline.process(make_frame(), crop))
        second = pipeline.to_message(pipeline.process(make_frame(), crop))

        assert first['track_count'] == 0
        assert second['track_count'] == 2

    def test_reset_keeps_id_counter(self):
        pipeline = make_pipeline()
        crop = CropRect.full_image(100, 100)
        pipeline.process(make_frame(), crop)

        pipeline.reset()
        result = pipeline.process(make_frame(), crop)

        assert result.frame_id == 0
        assert sorted(t.id for t in result.tracks) == [2, 3]


@pytest.mark.integration
class TestReplayCli:

    def test_replay_prints_one_message_per_frame(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(cli, 'setup_logging', lambda **kwargs: None)
        monkeypatch.delenv('DETRACK_CONFIG', raising=False)

        tensors = tmp_path / "tensors.npy"
        np.save(tensors, np.stack([make_frame(), make_frame()]))
        labels = tmp_path / "labels.txt"
        labels.write_text("person\ncar\n", encoding='utf-8')

        exit_code = cli.main(["replay", str(tensors), "--labels", str(labels)])

        assert exit_code == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2
        messages = [json.loads(line) for line in lines]
        assert [m['frame_id'] for m in messages] == [0, 1]
        assert messages[1]['track_count'] == 2

    def test_replay_without_labels_fails(self, tmp_path, monkeypatch):
        monkeypatch.setattr(cli, 'setup_logging', lambda **kwargs: None)
        monkeypatch.delenv('DETRACK_CONFIG', raising=False)
        tensors = tmp_path / "tensors.npy"
        np.save(tensors, np.stack([make_frame()]))

        assert cli.main(["replay", str(tensors)]) == 2
