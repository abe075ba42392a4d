"""Case, evidence and crime-report management with clearance-based access control."""

__version__ = "0.1.0"

__all__ = ["__version__"]