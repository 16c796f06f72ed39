"""boxctl: box scaffolding CLI with overridable, manifest-driven commands."""

__version__ = "0.1.0"
