"""
Label loading: un label por línea (UTF-8), índice = número de línea (0-based).
"""
from pathlib import Path
from typing import List, Union
import logging

logger = logging.getLogger(__name__)


def read_labels(path: Union[str, Path]) -> List[str]:
    """
    Lee el archivo de labels del modelo (ej: label_coco_80.txt).

    Args:
        path: Path al archivo de labels

    Returns:
        Lista de labels; label_list[class_id] es el nombre de la clase

    Raises:
        FileNotFoundError: Si el archivo no existe
    """
    label_file = Path(path)
    if not label_file.exists():
        raise FileNotFoundError(f"Label file not found: {path}")

    with open(label_file, 'r', encoding='utf-8') as f:
        labels = [line.rstrip('\r\n') for line in f]

    logger.info(f"🏷️ Labels cargados: {len(labels)} clases ({label_file.name})")
    return labels
