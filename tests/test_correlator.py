import logging

from msstore_dl.core.correlator import ResponseCorrelator, correlate
from msstore_dl.core.document import SyncDocument
from msstore_dl.exceptions import (
    FileNodeCorrelationWarning,
    FragmentCorrelationWarning,
)
from msstore_dl.models import UpdateIdentity
from soap_fixtures import extended_update, file_entry, sync_response, update_info


def _doc(new_updates, extended) -> SyncDocument:
    return SyncDocument.from_xml(sync_response(new_updates, extended))


class TestFilesPass:
    def test_single_file_is_mapped(self):
        doc = _doc([], [extended_update("555", file_entry("XYZ", "app.msixbundle"))])
        result = correlate(doc, "XYZ")
        assert result.files == {"555": "XYZ_app.msixbundle"}
        assert result.updates == {}
        assert result.warnings == []

    def test_files_outside_package_family_are_dropped_silently(self):
        doc = _doc(
            [],
            [
                extended_update("1", file_entry("Contoso.App_1.0_x64", "a.msix")),
                extended_update("2", file_entry("Microsoft.VCLibs_14.0_x64", "b.appx")),
            ],
        )
        result = correlate(doc, "Contoso.App")
        assert result.files == {"1": "Contoso.App_1.0_x64_a.msix"}
        assert result.warnings == []

    def test_empty_prefix_keeps_everything(self):
        doc = _doc(
            [],
            [
                extended_update("1", file_entry("A", "a.msix")),
                extended_update("2", file_entry("B", "b.msix")),
            ],
        )
        assert correlate(doc, "").files == {"1": "A_a.msix", "2": "B_b.msix"}

    def test_malformed_file_node_is_skipped_with_warning(self, caplog):
        doc = _doc(
            [],
            [
                extended_update("1", file_entry("XYZ", "one.msix")),
                extended_update("2", file_entry("XYZ", None)),
                extended_update("3", file_entry("XYZ", "three.msix")),
            ],
        )
        with caplog.at_level(logging.WARNING):
            result = correlate(doc, "XYZ")

        assert result.files == {"1": "XYZ_one.msix", "3": "XYZ_three.msix"}
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], FileNodeCorrelationWarning)
        assert "FileName" in str(result.warnings[0])
        assert "Error processing file node" in caplog.text

    def test_files_node_without_id_warns(self):
        doc = SyncDocument.from_xml(
            "<Envelope><Body><Update><Xml>"
            f"{file_entry('XYZ', 'a.msix')}"
            "</Xml></Update></Body></Envelope>"
        )
        result = correlate(doc, "XYZ")
        assert result.files == {}
        assert isinstance(result.warnings[0], FileNodeCorrelationWarning)

    def test_files_node_too_close_to_root_warns(self):
        doc = SyncDocument.from_xml(f"<Envelope>{file_entry('XYZ', 'a.msix')}</Envelope>")
        result = correlate(doc, "XYZ")
        assert result.files == {}
        assert len(result.warnings) == 1

    def test_empty_files_node_warns(self):
        doc = _doc([], [extended_update("9", "<Files></Files>")])
        result = correlate(doc, "")
        assert result.files == {}
        assert isinstance(result.warnings[0], FileNodeCorrelationWarning)

    def test_id_must_be_two_levels_up(self):
        # One extra wrapper puts the ID three levels above Files, so the
        # owner found two levels up has no ID of its own.
        doc = SyncDocument.from_xml(
            "<Envelope><Update><ID>7</ID><Xml><Wrapper>"
            f"{file_entry('XYZ', 'a.msix')}"
            "</Wrapper></Xml></Update></Envelope>"
        )
        result = correlate(doc, "XYZ")
        assert result.files == {}
        assert len(result.warnings) == 1


class TestFragmentsPass:
    def test_fragment_maps_filename_to_identity(self):
        doc = _doc(
            [update_info("555", "U1", "3")],
            [extended_update("555", file_entry("XYZ", "app.msixbundle"))],
        )
        result = correlate(doc, "XYZ")
        assert result.files == {"555": "XYZ_app.msixbundle"}
        assert result.updates == {"XYZ_app.msixbundle": UpdateIdentity("U1", "3")}
        assert result.warnings == []

    def test_fragments_for_unknown_files_are_ignored(self):
        doc = _doc(
            [update_info("555", "U1", "3"), update_info("777", "U2", "1")],
            [extended_update("555", file_entry("XYZ", "app.msixbundle"))],
        )
        result = correlate(doc, "XYZ")
        assert list(result.updates) == ["XYZ_app.msixbundle"]
        assert result.warnings == []

    def test_last_fragment_wins(self):
        doc = _doc(
            [update_info("555", "U1", "3"), update_info("555", "U1", "4")],
            [extended_update("555", file_entry("XYZ", "app.msixbundle"))],
        )
        result = correlate(doc, "XYZ")
        assert result.updates == {"XYZ_app.msixbundle": UpdateIdentity("U1", "4")}

    def test_missing_revision_is_skipped_with_warning(self):
        broken = update_info("555", "U1", "3").replace(' RevisionNumber="3"', "")
        doc = _doc(
            [broken, update_info("556", "U2", "1")],
            [
                extended_update("555", file_entry("XYZ", "a.msix")),
                extended_update("556", file_entry("XYZ", "b.msix")),
            ],
        )
        result = correlate(doc, "XYZ")
        assert result.updates == {"XYZ_b.msix": UpdateIdentity("U2", "1")}
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], FragmentCorrelationWarning)

    def test_identity_is_first_element_child_of_holder(self):
        # Whitespace and text before the identity element must not matter.
        doc = SyncDocument.from_xml(
            "<Envelope><UpdateInfo><ID>555</ID><Xml>\n  some text\n"
            '  <UpdateIdentity UpdateID="U9" RevisionNumber="200" />'
            "<Properties><SecuredFragment /></Properties></Xml></UpdateInfo>"
            f"{extended_update('555', file_entry('XYZ', 'a.msix'))}</Envelope>"
        )
        result = correlate(doc, "XYZ")
        assert result.updates == {"XYZ_a.msix": UpdateIdentity("U9", "200")}


def test_correlation_is_deterministic():
    doc = _doc(
        [update_info(str(i), f"U{i}", str(i)) for i in range(5)],
        [extended_update(str(i), file_entry("XYZ", f"f{i}.msix")) for i in range(5)]
        + [extended_update("99", file_entry("XYZ", None))],
    )
    first = ResponseCorrelator("XYZ").correlate(doc)
    second = ResponseCorrelator("XYZ").correlate(doc)
    assert first.files == second.files
    assert first.updates == second.updates
    assert [str(w) for w in first.warnings] == [str(w) for w in second.warnings]
    assert len(first.updates) == 5
