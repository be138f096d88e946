"""Embedded k3s manifest templates (Jinja2, rendered against ``node``)."""
