"""System package operators.

Operators install build dependencies through the host's package manager.
"""

from claudepkg.operators.base import Operator
from claudepkg.operators.pacman import PacmanOperator

__all__ = ["Operator", "PacmanOperator"]
