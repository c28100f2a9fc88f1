"""Tests for the create-house command and its settings."""

import json

import pytest

from house_builder.command import CommandResult, CreateHouseCommand, Result
from house_builder.config import HouseSettings
from house_builder.models import BuiltInCategory, Document


class TestCreateHouseCommand:
    def test_succeeds_on_template(self):
        doc = Document.from_template(title="House")
        result = CreateHouseCommand().execute(doc)
        assert result.result == Result.SUCCEEDED
        assert result.succeeded
        assert result.message == ""
        assert len(result.element_ids) == 9
        assert len(doc.walls) == 4
        assert len(doc.family_instances) == 4
        assert len(doc.roofs) == 1
        assert not doc.is_modifiable

    def test_created_ids_resolve(self):
        doc = Document.from_template()
        result = CreateHouseCommand().execute(doc)
        assert all(doc.get_element(eid) is not None for eid in result.element_ids)

    def test_house_validates_clean(self):
        doc = Document.from_template()
        CreateHouseCommand().execute(doc)
        assert doc.validate_elements() == []

    def test_fails_without_levels(self):
        doc = Document(title="Empty")
        result = CreateHouseCommand().execute(doc)
        assert result.result == Result.FAILED
        assert "level" in result.message
        assert result.element_ids == []
        assert doc.walls == []

    def test_missing_roof_type_keeps_committed_steps(self):
        doc = Document.from_template()
        settings = HouseSettings(roof_type_name="Slate - 50mm")
        result = CreateHouseCommand(settings).execute(doc)
        assert result.result == Result.FAILED
        assert result.message == "Roof type 'Базовая крыша: Slate - 50mm' not found"
        assert len(doc.walls) == 4
        assert len(doc.family_instances) == 4
        assert doc.roofs == []
        assert doc.transaction_log[-1] == "Creating of window"

    def test_missing_window_type(self):
        doc = Document.from_template()
        doc.family_symbols = [
            s for s in doc.family_symbols if s.category != BuiltInCategory.WINDOWS
        ]
        result = CreateHouseCommand().execute(doc)
        assert not result.succeeded
        assert "OST_Windows" in result.message
        assert len(doc.family_instances) == 1

    def test_open_transaction_fails_cleanly(self):
        doc = Document.from_template()
        with doc.transaction("Busy"):
            result = CreateHouseCommand().execute(doc)
        assert result.result == Result.FAILED
        assert "Busy" in result.message
        assert doc.walls == []

    def test_failure_is_logged(self, caplog):
        doc = Document(title="Empty")
        with caplog.at_level("ERROR", logger="house_builder.command"):
            CreateHouseCommand().execute(doc)
        assert "Create house failed on 'Empty'" in caplog.text


class TestCommandResult:
    def test_defaults(self):
        result = CommandResult(result=Result.FAILED)
        assert not result.succeeded
        assert result.message == ""
        assert result.element_ids == []

    def test_only_success_or_failure(self):
        assert [r.value for r in Result] == ["Succeeded", "Failed"]


class TestHouseSettings:
    def test_defaults(self):
        settings = HouseSettings()
        assert settings.width_internal == pytest.approx(10.0)
        assert settings.depth_internal == pytest.approx(5.0)
        assert settings.window_sill_internal == pytest.approx(1.5)
        assert settings.roof_family_name == "Базовая крыша"

    def test_window_sill_measured_from_base_level(self):
        description = HouseSettings.model_fields["window_sill"].description
        assert "base level" in description

    def test_load(self, tmp_path):
        path = tmp_path / "house.json"
        path.write_text(json.dumps({"width": 12, "depth": 9, "unit": "m"}), encoding="utf-8")
        settings = HouseSettings.load(path)
        assert settings.width_internal == pytest.approx(12.0)
        assert settings.depth_internal == pytest.approx(9.0)

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "house.json"
        path.write_text(json.dumps({"storeys": 3}), encoding="utf-8")
        with pytest.raises(ValueError):
            HouseSettings.load(path)

    def test_non_positive_width_rejected(self):
        with pytest.raises(ValueError):
            HouseSettings(width=0)
