"""
Survey Document Variable Engine

Turns company-formation survey answers into the flat variable map that
document templates are filled from, and decides which templates a survey
needs.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - HTTP transport or authentication
    - Storage backends (Redis, SQL, files)
    - DOCX binary rendering
    - UI presentation

This package defines TRANSFORMATION and SELECTION logic only.

Storage supplies answers and configuration as plain data.
Renderers consume the variable map unchanged.
"""

__version__ = "0.1.0"
