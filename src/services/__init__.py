"""Application services: orchestration core, stage services and LLM-backed helpers."""
