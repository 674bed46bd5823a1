"""Presentation core: contract + run -> renderer-agnostic node tree.

Synchronous and side-effect free. render_run() builds a PresentationTree,
export_markdown() serializes the same entries in the same order.
"""
