"""
Structured Logging Infrastructure
==================================

Logging JSON-based para queryability en producción.

Design Philosophy:
- Solo JSON (no dual output - pragmatismo > complejidad)
- Trace correlation vía contextvars (un trace_id por frame)
- Helpers para casos comunes (métricas, stats del tracker, errores)
- File rotation automático (RotatingFileHandler)

Usage:
    # Setup (una vez al inicio)
    from detrack.logging import setup_logging

    # Stdout (desarrollo)
    setup_logging(level="INFO")

    # File con rotation (producción)
    setup_logging(
        level="INFO",
        log_file="logs/detrack.log",
        max_bytes=10*1024*1024,  # 10 MB
        backup_count=5
    )

    # Con trace propagation
    from detrack.logging import trace_context, get_trace_id

    with trace_context(generate_trace_id("frame")):
        logger.info("Procesando frame", extra={"trace_id": get_trace_id()})
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, Dict, Any
import uuid

# ============================================================================
# Trace Context (propagación de trace_id)
# ============================================================================

trace_id_var: ContextVar[Optional[str]] = ContextVar('trace_id', default=None)


def get_trace_id() -> Optional[str]:
    """
    Obtiene el trace_id actual del contexto.

    Returns:
        Trace ID actual o None si no hay contexto activo
    """
    return trace_id_var.get()


def generate_trace_id(prefix: str = "trace") -> str:
    """
    Genera un nuevo trace ID único.

    Args:
        prefix: Prefijo para el trace ID (ej: "frame", "replay")

    Returns:
        Trace ID en formato: {prefix}-{short_uuid}
    """
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """
    Context manager para propagar trace_id en toda la call stack.

    Args:
        trace_id: ID de trace a propagar. Si None, genera uno automático.
    """
    if trace_id is None:
        trace_id = generate_trace_id()

    token = trace_id_var.set(trace_id)
    try:
        yield trace_id
    finally:
        trace_id_var.reset(token)


# ============================================================================
# Logger Setup
# ============================================================================

def setup_logging(
    level: str = "INFO",
    indent: Optional[int] = None,
    add_fields: Optional[Dict[str, Any]] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
) -> None:
    """
    Configura structured logging (JSON) para toda la aplicación.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        indent: JSON indent para pretty-print (None = compact, 2 = readable)
        add_fields: Campos adicionales globales (ej: {"environment": "production"})
        log_file: Path al archivo de logs (None = stderr). Si se especifica, usa rotation.
        max_bytes: Tamaño máximo por archivo antes de rotar (default 10 MB)
        backup_count: Número de archivos backup a mantener (default 5)

    Note:
        Sin log_file se loguea a stderr: stdout queda libre para el output
        JSON de los frames (CLI replay).
    """
    try:
        from pythonjsonlogger import jsonlogger
    except ImportError:
        raise ImportError(
            "pythonjsonlogger no encontrado. Instalar con: pip install python-json-logger"
        )

    class CustomJsonFormatter(jsonlogger.JsonFormatter):
        def add_fields(self, log_record, record, message_dict):
            super().add_fields(log_record, record, message_dict)

            # Renombrar campos para consistencia
            if 'levelname' in log_record:
                log_record['level'] = log_record.pop('levelname')

            if 'name' in log_record:
                log_record['logger'] = log_record.pop('name')

            current_trace_id = get_trace_id()
            if current_trace_id and 'trace_id' not in log_record:
                log_record['trace_id'] = current_trace_id

            if add_fields:
                for key, value in add_fields.items():
                    if key not in log_record:
                        log_record[key] = value

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
    else:
        handler = logging.StreamHandler(sys.stderr)

    formatter = CustomJsonFormatter(
        '%(timestamp)s %(level)s %(logger)s %(message)s',
        timestamp=True,
        json_indent=indent
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))


# ============================================================================
# Helper Functions (DRY para casos comunes)
# ============================================================================

def log_pipeline_metrics(
    logger: logging.Logger,
    frame_id: int,
    time_decode_ms: float,
    time_nms_ms: float,
    time_track_ms: float,
    additional_metrics: Optional[Dict[str, Any]] = None
) -> None:
    """
    Helper para logs de tiempos por etapa del pipeline.

    Args:
        logger: Logger instance
        frame_id: Número de frame procesado
        time_decode_ms: Tiempo de decode en milisegundos
        time_nms_ms: Tiempo de NMS en milisegundos
        time_track_ms: Tiempo de tracking en milisegundos
        additional_metrics: Métricas adicionales
    """
    metrics = {
        "frame_id": frame_id,
        "decode_ms": round(time_decode_ms, 3),
        "nms_ms": round(time_nms_ms, 3),
        "track_ms": round(time_track_ms, 3),
    }

    if additional_metrics:
        metrics.update(additional_metrics)

    extra = {
        "component": "detection_pipeline",
        "metrics": metrics
    }

    total_ms = time_decode_ms + time_nms_ms + time_track_ms
    logger.debug(f"📊 Frame {frame_id} post-processed in {total_ms:.2f} ms", extra=extra)


def log_tracker_stats(
    logger: logging.Logger,
    raw_count: int,
    filtered_count: int,
    active_tracks: int,
    total_created: int = 0,
    total_removed: int = 0,
    component: str = "tracker",
) -> None:
    """
    Helper para logs de estadísticas de tracking.

    Args:
        logger: Logger instance
        raw_count: Candidatos del decoder en el frame actual
        filtered_count: Detecciones después de NMS
        active_tracks: Tracks vivos actualmente
        total_created: Total de tracks creados (acumulado)
        total_removed: Total de tracks eliminados (acumulado)
        component: Componente que genera el log
    """
    extra = {
        "component": component,
        "tracking": {
            "raw_count": raw_count,
            "filtered_count": filtered_count,
            "active_tracks": active_tracks,
            "total_created": total_created,
            "total_removed": total_removed,
        }
    }

    logger.debug(
        f"Tracking processed: {raw_count} raw → {filtered_count} filtered (active_tracks={active_tracks})",
        extra=extra
    )


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    exception: Optional[Exception] = None,
    component: str = "unknown",
    event: Optional[str] = None,
    trace_id: Optional[str] = None,
    **kwargs: Any
) -> None:
    """
    Helper para logs de errores con contexto completo.

    Args:
        logger: Logger instance
        message: Mensaje de error
        exception: Excepción capturada (opcional)
        component: Componente donde ocurrió el error
        event: Evento que causó el error
        trace_id: Trace ID (usa contexto si no se especifica)
        **kwargs: Contexto adicional (frame_id, tensor_size, etc.)
    """
    extra = {
        "component": component,
        "trace_id": trace_id or get_trace_id()
    }

    if event:
        extra["event"] = event

    if exception:
        extra["error_type"] = type(exception).__name__
        extra["error_message"] = str(exception)

    extra.update(kwargs)

    if exception:
        logger.error(f"{message}: {exception}", extra=extra, exc_info=True)
    else:
        logger.error(message, extra=extra)


def get_component_logger(component: str) -> logging.Logger:
    """
    Obtiene un logger con namespace específico.

    Args:
        component: Nombre del componente (pipeline, tracker, etc.)

    Returns:
        Logger configurado para ese componente
    """
    return logging.getLogger(f"detrack.{component}")


__all__ = [
    # Setup
    "setup_logging",
    # Trace context
    "trace_context",
    "get_trace_id",
    "generate_trace_id",
    # Helpers
    "log_pipeline_metrics",
    "log_tracker_stats",
    "log_error_with_context",
    # Component loggers
    "get_component_logger",
]
