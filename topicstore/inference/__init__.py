"""Inference strategy interfaces and registry."""

from .base import (
    KNOWN_METHODS,
    InferenceStrategy,
    LdaModel,
    get_inference,
    register_inference,
    registered_methods,
)

__all__ = [
    "KNOWN_METHODS",
    "InferenceStrategy",
    "LdaModel",
    "get_inference",
    "register_inference",
    "registered_methods",
]
