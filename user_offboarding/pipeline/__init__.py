"""The three offboarding stages: prepare, delete and verify."""

from .deleter import Deleter
from .resolver import Resolver
from .verifier import Verifier

__all__ = ["Resolver", "Deleter", "Verifier"]
