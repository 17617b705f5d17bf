"""Ordered, read-only collection of package definitions."""

from dataclasses import replace
from typing import Iterable, Iterator, Optional, Union

from ..core.data import TriggerMode
from .package import Package


PackageRef = Union[int, str]


class PackageCatalog:
    """Packages in catalog order, addressed by index id or by name.

    Ids are assigned from the position in the catalog, so catalog order and
    id order are the same thing.
    """

    def __init__(self, packages: Iterable[Package] = ()):
        self._packages: tuple[Package, ...] = tuple(
            replace(package, id=index) for index, package in enumerate(packages)
        )

    def __len__(self) -> int:
        return len(self._packages)

    def __iter__(self) -> Iterator[Package]:
        return iter(self._packages)

    def __contains__(self, package_id: object) -> bool:
        return isinstance(package_id, int) and 0 <= package_id < len(self._packages)

    def get(self, package_id: int) -> Optional[Package]:
        """Package by id, or None when out of range."""
        if package_id in self:
            return self._packages[package_id]
        return None

    def find_by_name(self, name: Optional[str]) -> Optional[Package]:
        """First package whose name matches exactly."""
        if name is None or not name.strip():
            return None
        for package in self._packages:
            if package.name == name:
                return package
        return None

    def resolve(self, ref: PackageRef) -> Optional[Package]:
        """Look a package up by id (int) or name (str)."""
        if isinstance(ref, bool):
            return None
        if isinstance(ref, int):
            return self.get(ref)
        if isinstance(ref, str):
            return self.find_by_name(ref)
        return None

    def with_own_hooks(self) -> "PackageCatalog":
        """Copy of the catalog whose packages have their own hook lists.

        Hooks added to the copy do not reach the packages of this catalog,
        so several sessions can bind hooks to one loaded definition.
        """
        return PackageCatalog(replace(package, hooks=package.hooks.copy()) for package in self._packages)

    def with_mode(self, mode: TriggerMode) -> list[Package]:
        """Enabled packages listening for a trigger mode, in catalog order."""
        return [p for p in self._packages if p.enabled and p.trigger_mode is mode]

    @property
    def names(self) -> list[str]:
        return [p.name for p in self._packages]
