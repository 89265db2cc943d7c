"""
DotPrint Core Module

Framework-agnostic logic for DotPrint:
- Feature extraction from dot patterns
- Pattern validation
- Anonymous submission store and contribution ledger
- Aggregate and admin statistics

Example usage:
    from core.features import compute_features
    from core.services import Services
"""

__version__ = "0.1.0"
