"""Application initialization: logging, service wiring and shutdown."""
