#!/usr/bin/env python3
"""
CLI para replay de output tensors
=================================

Reproduce una secuencia de output tensors guardados (numpy .npy) a través
del pipeline decode → NMS → tracking e imprime un mensaje JSON por frame.

Uso:
    python -m detrack replay tensors.npy --labels label_coco_80.txt
    python -m detrack replay tensors.npy --labels labels.txt --image-size 1280 720
    python -m detrack replay tensors.npy --labels labels.txt --config config.yaml --indent 2

El .npy debe tener shape (frames, anchors, 5 + C) o (frames, 1, anchors, 5 + C).
"""
import sys
import json
import argparse
from typing import List, Optional

import numpy as np
from dotenv import load_dotenv

from .config import DetrackConfig, EnvironmentSettings
from .errors import DetrackError
from .inference import CropRect, read_labels
from .logging import get_component_logger, setup_logging
from .pipeline import DetectionPipeline

logger = get_component_logger("cli")


def load_config(config_path: Optional[str]) -> DetrackConfig:
    """Config desde --config, DETRACK_CONFIG, o defaults."""
    path = config_path or EnvironmentSettings().config
    if path:
        return DetrackConfig.from_yaml(path)
    return DetrackConfig().with_env_overrides()


def replay(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    setup_logging(
        level=config.logging.level,
        indent=config.logging.json_indent,
        log_file=config.logging.file,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
    )

    labels_path = args.labels or config.decoder.labels_path
    if not labels_path:
        print("❌ Falta label file (--labels o decoder.labels_path)", file=sys.stderr)
        return 2

    labels = read_labels(labels_path)
    frames = np.load(args.tensors, mmap_mode='r')
    if frames.ndim < 3:
        print(f"❌ Se esperaba (frames, anchors, 5 + C), shape recibido: {frames.shape}", file=sys.stderr)
        return 2

    pipeline = DetectionPipeline.from_config(config, labels, tensor_shape=frames.shape[1:])
    logger.info(f"▶️ Replay: {len(frames)} frames desde {args.tensors}")

    input_w, input_h = config.decoder.input_width, config.decoder.input_height
    if args.image_size:
        crop = CropRect.fit_aspect(args.image_size[0], args.image_size[1], input_w, input_h)
    else:
        crop = CropRect.full_image(input_w, input_h)

    try:
        for frame in frames:
            result = pipeline.process(frame, crop)
            print(json.dumps(pipeline.to_message(result), indent=args.indent))
    except DetrackError as e:
        print(f"❌ Replay abortado: {e}", file=sys.stderr)
        return 1

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="detrack",
        description="Post-procesamiento de detección (decode, NMS, tracking)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    replay_parser = subparsers.add_parser(
        "replay",
        help="Reproduce output tensors guardados y emite tracks en JSON"
    )
    replay_parser.add_argument(
        "tensors",
        help="Archivo .npy con shape (frames, anchors, 5 + C)"
    )
    replay_parser.add_argument(
        "--labels",
        default=None,
        help="Label file, un label por línea (default: decoder.labels_path)"
    )
    replay_parser.add_argument(
        "--config",
        default=None,
        help="config.yaml (default: $DETRACK_CONFIG o valores por defecto)"
    )
    replay_parser.add_argument(
        "--image-size",
        nargs=2,
        type=int,
        metavar=("WIDTH", "HEIGHT"),
        default=None,
        help="Tamaño de la imagen original (default: tamaño del input del modelo)"
    )
    replay_parser.add_argument(
        "--indent",
        type=int,
        default=None,
        help="JSON indent del output (default: compacto)"
    )
    replay_parser.set_defaults(func=replay)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
