"""
Correlates a SyncUpdates response into (filename → update identity) pairs.

The response carries two views of each update. The extended view holds the
update's numeric `ID` and its `Files`; the new-updates view holds the same
`ID`, the `UpdateIdentity` and a `SecuredFragment`. Nothing links the two
except the numeric id and the fixed nesting below, which is why the lookups
go by ancestor distance:

    Update                      <- owner, 2 levels above Files
      ID
      Xml
        Files
          File FileName=... InstallerSpecificIdentifier=...

    UpdateInfo                  <- owner, 3 levels above SecuredFragment
      ID
      Xml                       <- identity holder, 2 levels above SecuredFragment
        UpdateIdentity UpdateID=... RevisionNumber=...
        Properties
          SecuredFragment
"""

import logging
from typing import Callable, Optional, TypeVar

from msstore_dl.exceptions import (
    CorrelationWarning,
    FileNodeCorrelationWarning,
    FragmentCorrelationWarning,
)
from msstore_dl.models.product import build_filename
from msstore_dl.models.update import CorrelationResult, UpdateIdentity

from .document import Node, SyncDocument

log = logging.getLogger(__name__)

FILES_TO_OWNER = 2
FRAGMENT_TO_OWNER = 3
FRAGMENT_TO_IDENTITY_HOLDER = 2

W = TypeVar("W", bound=CorrelationWarning)


def _require(value: Optional[str], warning: Callable[[str], W], what: str) -> str:
    if not value:
        raise warning(f"missing {what}")
    return value


class ResponseCorrelator:
    """Builds the file and update maps for one product's package family."""

    def __init__(self, package_family_prefix: str):
        self.package_family_prefix = package_family_prefix

    def correlate(self, doc: SyncDocument) -> CorrelationResult:
        result = CorrelationResult()
        self._collect_files(doc, result)
        self._collect_updates(doc, result)
        log.debug(
            f"Correlated {len(result.files)} files and {len(result.updates)} "
            f"updates ({len(result.warnings)} warnings)"
        )
        return result

    def _collect_files(self, doc: SyncDocument, result: CorrelationResult) -> None:
        for node in doc.named("Files"):
            try:
                entry = self._file_entry(doc, node)
            except FileNodeCorrelationWarning as w:
                log.warning(f"⚠️ Warning: Error processing file node: {w}")
                result.warnings.append(w)
                continue
            if entry is not None:
                file_id, filename = entry
                result.files[file_id] = filename

    def _file_entry(self, doc: SyncDocument, node: Node) -> Optional[tuple[str, str]]:
        """Returns `(file_id, filename)`, or None when outside the package family."""
        owner = doc.ancestor(node, FILES_TO_OWNER)
        if owner is None:
            raise FileNodeCorrelationWarning(
                f"Files node #{node.index} has no owning update"
            )
        file_id = _require(
            doc.text(doc.first_descendant(owner, "ID")),
            FileNodeCorrelationWarning,
            f"ID for Files node #{node.index}",
        )
        first = doc.first_child(node)
        if first is None:
            raise FileNodeCorrelationWarning(f"Files node for {file_id} is empty")
        installer_id = _require(
            doc.attribute(first, "InstallerSpecificIdentifier"),
            FileNodeCorrelationWarning,
            f"InstallerSpecificIdentifier for file {file_id}",
        )
        file_name = _require(
            doc.attribute(first, "FileName"),
            FileNodeCorrelationWarning,
            f"FileName for file {file_id}",
        )

        filename = build_filename(installer_id, file_name)
        if not filename.startswith(self.package_family_prefix):
            return None
        return file_id, filename

    def _collect_updates(self, doc: SyncDocument, result: CorrelationResult) -> None:
        for node in doc.named("SecuredFragment"):
            try:
                entry = self._update_entry(doc, node, result.files)
            except FragmentCorrelationWarning as w:
                log.warning(f"⚠️ Warning: Error processing secured fragment: {w}")
                result.warnings.append(w)
                continue
            if entry is not None:
                filename, identity = entry
                result.updates[filename] = identity

    def _update_entry(
        self, doc: SyncDocument, node: Node, files: dict[str, str]
    ) -> Optional[tuple[str, UpdateIdentity]]:
        """Returns `(filename, identity)`, or None for files outside the map."""
        owner = doc.ancestor(node, FRAGMENT_TO_OWNER)
        if owner is None:
            raise FragmentCorrelationWarning(
                f"SecuredFragment #{node.index} has no owning update"
            )
        file_id = _require(
            doc.text(doc.first_descendant(owner, "ID")),
            FragmentCorrelationWarning,
            f"ID for SecuredFragment #{node.index}",
        )
        if file_id not in files:
            return None

        holder = doc.ancestor(node, FRAGMENT_TO_IDENTITY_HOLDER)
        identity_node = doc.first_child(holder) if holder is not None else None
        if identity_node is None:
            raise FragmentCorrelationWarning(f"No update identity for file {file_id}")
        update_id = _require(
            doc.attribute(identity_node, "UpdateID"),
            FragmentCorrelationWarning,
            f"UpdateID for file {file_id}",
        )
        revision = _require(
            doc.attribute(identity_node, "RevisionNumber"),
            FragmentCorrelationWarning,
            f"RevisionNumber for file {file_id}",
        )
        return files[file_id], UpdateIdentity(update_id, revision)


def correlate(doc: SyncDocument, package_family_prefix: str) -> CorrelationResult:
    """Shorthand for `ResponseCorrelator(prefix).correlate(doc)`."""
    return ResponseCorrelator(package_family_prefix).correlate(doc)
