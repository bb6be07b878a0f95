"""TableSmith: Markdown table editing with undo/redo and version reconciliation."""

__version__ = "0.1.0"
