"""Abstract base class for system package operators.

This module defines the Operator interface used by the dependency
resolver to install build tools on the host.
"""

from abc import ABC, abstractmethod

from claudepkg.core.context import ToolRunner


class Operator(ABC):
    """Abstract base class for system package operators.

    Operators install packages through one package manager. All calls go
    through a :class:`ToolRunner`, which applies the privilege and
    failure policy.

    Example:
        >>> operator = PacmanOperator(runner)
        >>> if operator.is_available():
        ...     operator.install(["icoutils", "wget"])
    """

    def __init__(self, runner: ToolRunner) -> None:
        """Initialize the operator.

        Args:
            runner: Tool runner used for every package-manager call.
        """
        self._runner = runner

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the package manager's display name."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system.

        Returns:
            True if the package manager can be used, False otherwise.
        """

    @abstractmethod
    def install(self, packages: list[str]) -> None:
        """Install packages in a single transaction.

        Args:
            packages: Package names to install.

        Raises:
            DependencyError: If the package manager reports failure.
        """

    @abstractmethod
    def has_package(self, name: str) -> bool:
        """Check if the repositories offer a package with this exact name.

        Args:
            name: Package name.

        Returns:
            True if the package exists in the sync databases.
        """
