"""worklog-migrator: rebuild legacy note-tool ZIP exports as work items."""

__version__ = "0.3.0"
