"""boardZ: reactive join & cascade engine for a kanban board."""

__version__ = "0.1.0"
