"""Sparse LU building blocks: compressed storage, triplet reading, MC64 matching and scaling, symbolic analysis and timing."""

__version__ = "0.1.0"

__all__ = [
    "sparse",
    "readfile",
    "mc64",
    "scaling",
    "symbolic",
    "static_symbolic",
    "preprocess",
    "timer",
]