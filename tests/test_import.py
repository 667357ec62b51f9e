"""
Tests for the import service and tier reconciliation.
"""

import io
import json

import pytest

from apibundle.domain import (
    Actor,
    APIDescriptor,
    ImportPhase,
    Sequence,
    SequenceDirection,
    WarningCode,
)
from apibundle.errors import (
    ArchiveCorruptError,
    CatalogError,
    DocumentImportError,
    MetadataParseError,
    RegistrationError,
)
from apibundle.infra.catalog_store import icon_ref
from apibundle.infra.local_store import LocalCatalogStore
from apibundle.services.import_service import ImportService, reconcile_tiers

from conftest import LOG_IN_BYTES, PDF_BYTES, PNG_BYTES, WEATHER, api_json, weather_descriptor

ADMIN = Actor("admin")


def run_import(service, archive, actor=ADMIN):
    list(service.import_archive(archive, actor))
    return service.last_result


class TestReconcileTiers:
    """Tests for the pure tier reconciliation step."""

    def test_set_difference(self):
        descriptor = weather_descriptor(available_tiers={"Gold", "Silver", "Bronze"})

        removed = reconcile_tiers(descriptor, {"Silver", "Bronze", "Unlimited"})

        assert removed == ["Gold"]
        assert descriptor.available_tiers == {"Silver", "Bronze"}

    def test_nothing_removed(self):
        descriptor = weather_descriptor()
        assert reconcile_tiers(descriptor, ["Gold", "Bronze", "Silver"]) == []
        assert descriptor.available_tiers == {"Gold", "Bronze"}

    def test_all_removed(self):
        descriptor = weather_descriptor()
        assert reconcile_tiers(descriptor, []) == ["Bronze", "Gold"]
        assert descriptor.available_tiers == set()


class TestImportArchive:
    """Tests for import_archive."""

    def test_minimal_archive(self, target_store, config, make_archive):
        archive = make_archive({"Meta-information/api.json": api_json(in_sequence=None)})

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.phase == ImportPhase.DONE
        assert result.api_id == WEATHER.key
        assert result.warnings == []
        stored = target_store.get_api(WEATHER)
        assert stored.thumbnail_url is None
        assert stored.wsdl_url is None

    def test_tier_downgrade(self, tmp_path, config, make_archive):
        target = LocalCatalogStore(tmp_path / "bronze-only", supported_tiers=["Bronze"])
        archive = make_archive({"Meta-information/api.json": api_json(in_sequence=None)})

        result = run_import(ImportService(target, config=config), archive)

        assert result.success
        assert target.get_api(WEATHER).available_tiers == {"Bronze"}
        assert [w.subject for w in result.warnings_of(WarningCode.UNSUPPORTED_TIER)] == ["Gold"]

    def test_root_name_is_recovered(self, target_store, config, make_archive):
        """Archives from other exporters may use any root name."""
        archive = make_archive({"Meta-information/api.json": api_json(in_sequence=None)},
                               root="tmp-4f9c2a")

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.root_name == "tmp-4f9c2a"
        assert result.success

    def test_upload_stream(self, target_store, config, make_archive):
        archive = make_archive({"Meta-information/api.json": api_json(in_sequence=None)})
        service = ImportService(target_store, config=config)

        messages = list(service.import_archive(io.BytesIO(archive.read_bytes()), ADMIN))

        assert messages[0] == "Receiving archive..."
        assert (service.last_result.workspace / "APIArchive.zip").is_file()
        assert service.last_result.success

    def test_corrupt_archive(self, target_store, config, tmp_path):
        archive = tmp_path / "broken.zip"
        archive.write_bytes(b"PK\x03\x04 definitely not complete")
        service = ImportService(target_store, config=config)

        with pytest.raises(ArchiveCorruptError):
            run_import(service, archive)

        assert service.last_result.phase == ImportPhase.FAILED
        with pytest.raises(CatalogError):
            target_store.get_api(WEATHER)


class TestImportFailures:
    """Hard failures end the import in FAILED with the failing phase."""

    def test_missing_api_json(self, target_store, config, make_archive):
        archive = make_archive({"Image/icon.png": PNG_BYTES})
        service = ImportService(target_store, config=config)

        with pytest.raises(MetadataParseError) as exc_info:
            run_import(service, archive)

        assert exc_info.value.phase == ImportPhase.METADATA_PARSED
        assert service.last_result.phase == ImportPhase.FAILED

    def test_malformed_api_json(self, target_store, config, make_archive):
        archive = make_archive({"Meta-information/api.json": '{"id": {"api_name": "Weather"}}'})

        with pytest.raises(MetadataParseError) as exc_info:
            run_import(ImportService(target_store, config=config), archive)
        assert exc_info.value.phase == ImportPhase.METADATA_PARSED

    def test_duplicate_registration(self, target_store, config, make_archive):
        target_store.register(weather_descriptor(in_sequence=None), ADMIN)
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Image/icon.png": PNG_BYTES,
            "Meta-information/swagger.json": '{"swagger": "2.0"}',
        })
        service = ImportService(target_store, config=config)

        with pytest.raises(RegistrationError) as exc_info:
            run_import(service, archive)

        assert exc_info.value.phase == ImportPhase.REGISTERED
        assert service.last_result.phase == ImportPhase.FAILED
        # Nothing attached after the rejection
        assert not target_store.content.exists(icon_ref(WEATHER))
        assert target_store.get_definition(WEATHER) is None

    def test_bad_docs_manifest(self, target_store, config, make_archive):
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Docs/docs.json": "{not json",
        })
        service = ImportService(target_store, config=config)

        with pytest.raises(DocumentImportError) as exc_info:
            run_import(service, archive)

        assert exc_info.value.phase == ImportPhase.DOCUMENTS
        assert isinstance(exc_info.value.__cause__, MetadataParseError)
        assert service.last_result.phase == ImportPhase.FAILED

    def test_missing_document_file(self, target_store, config, make_archive):
        docs = [{"name": "Guide", "source_type": "FILE", "file_path": "/Docs/guide.pdf"}]
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Docs/docs.json": json.dumps(docs),
        })

        with pytest.raises(DocumentImportError):
            run_import(ImportService(target_store, config=config), archive)

    def test_document_path_outside_archive(self, target_store, config, make_archive):
        docs = [{"name": "Guide", "source_type": "FILE", "file_path": "/../../../etc/passwd"}]
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Docs/docs.json": json.dumps(docs),
        })

        with pytest.raises(DocumentImportError, match="leaves the archive"):
            run_import(ImportService(target_store, config=config), archive)


class TestAssetAttachment:
    """Optional assets, documents and sequences."""

    def test_documents_attached(self, target_store, config, make_archive):
        docs = [
            {"name": "Guide", "source_type": "FILE", "file_path": "/Docs/guide.pdf"},
            {"name": "Overview", "source_type": "INLINE", "summary": "Forecasts"},
            {"name": "Reference", "source_type": "URL", "source_url": "https://example.com/reference"},
        ]
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Docs/docs.json": json.dumps(docs),
            "Docs/guide.pdf": PDF_BYTES,
        })

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.documents_attached == 3
        documents = {doc.name: doc for doc in target_store.list_documents(WEATHER)}
        assert documents['Overview'].summary == "Forecasts"
        assert documents["Reference"].source_url == "https://example.com/reference"
        assert target_store.content.read(documents['Guide'].file_path) == PDF_BYTES

    def test_icon_attached_and_referenced(self, target_store, config, make_archive):
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Image/icon.png": PNG_BYTES,
        })

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.icon_attached
        assert target_store.content.read(icon_ref(WEATHER)) == PNG_BYTES
        assert target_store.content.media_type(icon_ref(WEATHER)) == "image/png"
        assert target_store.get_api(WEATHER).thumbnail_url.endswith(icon_ref(WEATHER))

    def test_icon_with_unknown_extension_ignored(self, target_store, config, make_archive):
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Image/icon.svg": b"<svg/>",
        })

        result = run_import(ImportService(target_store, config=config), archive)

        assert not result.icon_attached
        assert target_store.get_api(WEATHER).thumbnail_url is None

    def test_sequence_registered(self, target_store, config, make_archive):
        archive = make_archive({
            "Meta-information/api.json": api_json(),
            "Sequences/in-sequence/log_in.xml": LOG_IN_BYTES,
        })

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.sequences_attached == 1
        catalog = target_store.sequences("carbon.super")
        assert catalog.get(SequenceDirection.IN, "log_in").config == LOG_IN_BYTES
        assert target_store.get_api(WEATHER).in_sequence == "log_in"

    def test_existing_sequence_not_overwritten(self, target_store, config, make_archive):
        catalog = target_store.sequences("carbon.super")
        catalog.put(Sequence("log_in", SequenceDirection.IN, b"<existing/>"))
        archive = make_archive({
            "Meta-information/api.json": api_json(),
            "Sequences/in-sequence/log_in.xml": LOG_IN_BYTES,
        })

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.success
        assert catalog.get(SequenceDirection.IN, "log_in").config == b"<existing/>"
        assert target_store.get_api(WEATHER).in_sequence == "log_in"

    def test_sequence_goes_to_actor_tenant(self, target_store, config, make_archive):
        archive = make_archive({
            "Meta-information/api.json": api_json(),
            "Sequences/in-sequence/log_in.xml": LOG_IN_BYTES,
        })

        run_import(ImportService(target_store, config=config), archive,
                   actor=Actor("alice@example.com"))

        assert target_store.sequences("example.com").exists(SequenceDirection.IN, "log_in")
        assert not target_store.sequences("carbon.super").exists(SequenceDirection.IN, "log_in")

    def test_sequence_file_name_wins(self, target_store, config, make_archive):
        """Without a matching file the first archived sequence is used."""
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Sequences/out-sequence/strip_headers.xml": b"<sequence name=\"strip_headers\"/>",
        })

        run_import(ImportService(target_store, config=config), archive)

        assert target_store.get_api(WEATHER).out_sequence == "strip_headers"

    def test_dangling_sequence_reference_cleared(self, target_store, config, make_archive):
        archive = make_archive({"Meta-information/api.json": api_json(in_sequence="ghost")})

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.success
        assert [w.subject for w in result.warnings_of(WarningCode.SEQUENCE_SKIPPED)] == ["ghost"]
        assert target_store.get_api(WEATHER).in_sequence is None

    def test_registered_sequence_reference_kept(self, target_store, config, make_archive):
        target_store.sequences("carbon.super").put(
            Sequence("log_in", SequenceDirection.IN, b"<existing/>")
        )
        archive = make_archive({"Meta-information/api.json": api_json()})

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.warnings == []
        assert target_store.get_api(WEATHER).in_sequence == "log_in"

    def test_wsdl_and_definition(self, target_store, config, make_archive):
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Meta-information/swagger.json": '{"swagger": "2.0"}',
            "WSDL/Weather-1.0.wsdl": b"<definitions/>",
        })

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.wsdl_attached
        assert result.definition_attached
        assert target_store.get_api(WEATHER).wsdl_url is not None
        assert target_store.get_definition(WEATHER) == '{"swagger": "2.0"}'

    def test_soft_failure_still_done(self, target_store, config, make_archive, monkeypatch):
        def broken_attach(*args, **kwargs):
            raise CatalogError("icon storage offline")

        monkeypatch.setattr(target_store, "attach_icon", broken_attach)
        archive = make_archive({
            "Meta-information/api.json": api_json(in_sequence=None),
            "Image/icon.png": PNG_BYTES,
        })

        result = run_import(ImportService(target_store, config=config), archive)

        assert result.phase == ImportPhase.DONE
        assert [w.code for w in result.warnings] == [WarningCode.ICON_SKIPPED]


class TestImportDirectory:
    """import_directory on an already extracted tree."""

    def test_direct_directory_import(self, target_store, config, tmp_path):
        root = tmp_path / "extracted" / "Weather-1.0"
        (root / "Meta-information").mkdir(parents=True)
        (root / "Meta-information" / "api.json").write_text(api_json(in_sequence=None))
        service = ImportService(target_store, config=config)

        list(service.import_directory(root, ADMIN))

        assert service.last_result.root_name == "Weather-1.0"
        assert service.last_result.success
        assert isinstance(service.last_result.descriptor, APIDescriptor)
