"""
detrack Test Suite
==================

Property-based tests for critical invariants.

Philosophy:
- Focus on invariants (properties that must always be true)
- Test critical paths (decode → NMS → tracking)
- NOT 100% coverage - only key behaviors

Modules:
- test_geometry: IoU invariants (simetría, bounds, identidad)
- test_decoder: thresholds, argmax, mapeo a píxeles
- test_nms: idempotencia, no-overlap, escenarios
- test_tracking: Track lifecycle, Tracker asociación/evicción/IDs
- test_config_validation: Pydantic schemas
- test_pipeline: frame end-to-end + CLI replay
"""
