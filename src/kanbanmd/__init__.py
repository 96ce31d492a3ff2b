"""kanbanmd - File-backed kanban card store with Markdown records."""

__version__ = "0.1.0"
