"""Centralized constants for bbqfeat."""

from .amino_acids import *  # noqa: F401,F403
from .runtime import *  # noqa: F401,F403
