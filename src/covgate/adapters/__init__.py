"""Concrete collaborators for the use cases (file system, git, TOML, watchdog)."""
