"""ProseGate - verified narrative prose for loan and regulatory documents."""

__version__ = "0.1.0"


# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    if name == "ProseGate":
        from prosegate.api.gate import ProseGate

        return ProseGate
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["ProseGate", "__version__"]
