"""Output Viewer - contract-driven presentation core.

This service turns agent run outputs into renderer-agnostic presentation
trees without ever exposing raw JSON to the analyst:
- View contracts (sections, main-content blocks, path expressions)
- Path resolution and template expansion over loosely-typed documents
- Fallback auto-visualization when a contract is missing or thin
"""

__version__ = "0.1.0"
