"""Python API."""

from prosegate.api.gate import ProseGate, deal_domain

__all__ = ["ProseGate", "deal_domain"]
