"""
Variation behaviors for owner records.

This module handles:
- Reconciliation of stored variations with the current option set
- Virtual attributes backed by the default variation
- Validation and save cascade from owner to variations

Invariants:
    - One variation per option after reconciliation, in option order
    - Orphaned variations are deleted when the set is first materialized
    - Owner validation fails if any materialized variation fails

How to change safely:
    - Keep lifecycle hooks lazy: never materialize variations from a hook
    - Test against both record store backends
"""

from .behavior import VariationCoordinator
from .lifecycle import LifecycleCoordinator
from .owner import VariationOwner
from .reconciler import Reconciler
from .resolver import AttributeResolver

__all__ = [
    "VariationCoordinator",
    "VariationOwner",
    "Reconciler",
    "AttributeResolver",
    "LifecycleCoordinator",
]
