"""
Dataclasses describing a catalog product and how it is fulfilled.
"""

from dataclasses import dataclass


def package_family_prefix(package_family_name: str) -> str:
    """
    Strips the trailing publisher id from a package family name.

    `"Publisher.App_8wekyb3d8bbwe"` becomes `"Publisher.App"`. A name without
    an underscore has no publisher segment to keep, so the prefix is empty.
    """
    return "_".join(package_family_name.split("_")[:-1])


def build_filename(installer_specific_id: str, file_name: str) -> str:
    """Builds the on-disk name of a package file."""
    return f"{installer_specific_id}_{file_name}"


@dataclass(frozen=True)
class ProductDescriptor:
    """The parts of a catalog product needed to query the update service."""

    product_id: str
    sku_id: str
    category_id: str
    package_family_name: str

    @property
    def package_family_prefix(self) -> str:
        return package_family_prefix(self.package_family_name)
