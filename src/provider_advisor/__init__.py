"""Provider Advisor - best-practice and inventory-drift suggestions for provider configurations."""

__version__ = "0.1.0"
