"""ParaMind: document context assembly and embedded action dispatch for an AI editing agent."""

__all__ = ["__version__"]

__version__ = "0.1.0"
