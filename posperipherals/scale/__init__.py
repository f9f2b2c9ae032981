"""Weighing scale protocol package for POSPeripherals."""

from .parser import WeightParser
from .decoder import ScaleDecoder

__all__ = [
    "WeightParser",
    "ScaleDecoder",
]
