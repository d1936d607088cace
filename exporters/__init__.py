"""Exporters for rendering cycle reports in various output formats."""

from .text_exporter import to_text
from .mermaid_exporter import to_mermaid
from .json_exporter import to_json

__all__ = ["to_text", "to_mermaid", "to_json"]
