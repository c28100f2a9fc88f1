"""Tests for the document: transactions, element factories, collector, file I/O."""

import pytest

from house_builder.errors import (
    ElementNotFoundError,
    InvalidOperationError,
    TransactionAlreadyStartedError,
    TransactionError,
    TransactionNotStartedError,
)
from house_builder.models import (
    BuiltInCategory,
    Document,
    FamilySymbol,
    Level,
    Line3D,
    Point3D,
    RoofType,
    TransactionStatus,
    Wall,
)


@pytest.fixture
def doc() -> Document:
    return Document.from_template(title="Test")


def _line(x1, y1, x2, y2) -> Line3D:
    return Line3D.create_bound(Point3D(x=x1, y=y1), Point3D(x=x2, y=y2))


def _level(doc: Document, name: str) -> Level:
    return doc.get_level_by_name(name)


class TestTemplate:
    def test_levels(self, doc):
        assert [(lv.name, lv.elevation) for lv in doc.levels] == [
            ("Level 1", 0.0),
            ("Level 2", 4.0),
        ]

    def test_stock_types(self, doc):
        assert len(doc.wall_types) == 2
        assert doc.default_wall_type_id == doc.wall_types[0].element_id
        categories = [s.category for s in doc.family_symbols]
        assert categories == [BuiltInCategory.DOORS, BuiltInCategory.WINDOWS]
        assert all(not s.is_active for s in doc.family_symbols)
        names = [(t.family_name, t.name) for t in doc.roof_types]
        assert ("Базовая крыша", "Типовой - 400мм") in names

    def test_custom_level_height(self):
        doc = Document.from_template(level_height=3.2)
        assert doc.levels[1].elevation == 3.2

    def test_only_meters(self):
        with pytest.raises(ValueError, match="meters"):
            Document(units="feet")


class TestTransactions:
    def test_modification_requires_transaction(self, doc):
        with pytest.raises(TransactionNotStartedError):
            doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
        assert doc.walls == []

    def test_commit(self, doc):
        with doc.transaction("Add wall") as t:
            doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
        assert t.status == TransactionStatus.COMMITTED
        assert len(doc.walls) == 1
        assert doc.transaction_log == ["Add wall"]
        assert not doc.is_modifiable

    def test_rollback_on_exception(self, doc):
        with pytest.raises(RuntimeError, match="boom"):
            with doc.transaction("Add wall") as t:
                doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
                raise RuntimeError("boom")
        assert t.status == TransactionStatus.ROLLED_BACK
        assert doc.walls == []
        assert doc.transaction_log == []
        assert not doc.is_modifiable

    def test_rollback_restores_modified_elements(self, doc):
        symbol = doc.family_symbols[0]
        with pytest.raises(RuntimeError):
            with doc.transaction("Activate"):
                doc.activate_symbol(symbol)
                assert doc.family_symbols[0].is_active
                raise RuntimeError("abort")
        assert doc.family_symbols[0].is_active is False

    def test_explicit_start_commit(self, doc):
        t = doc.transaction("Manual")
        t.start()
        assert doc.is_modifiable
        doc.create_level("Level 3", 8.0)
        t.commit()
        assert doc.get_level_by_name("Level 3") is not None

    def test_explicit_rollback(self, doc):
        t = doc.transaction("Manual").start()
        doc.create_level("Level 3", 8.0)
        t.rollback()
        assert doc.get_level_by_name("Level 3") is None

    def test_nested_transaction_rejected(self, doc):
        with doc.transaction("Outer"):
            with pytest.raises(TransactionAlreadyStartedError):
                doc.transaction("Inner").start()
        assert doc.transaction_log == ["Outer"]

    def test_commit_twice_rejected(self, doc):
        t = doc.transaction("Once").start()
        t.commit()
        with pytest.raises(TransactionError):
            t.commit()

    def test_undo(self, doc):
        with doc.transaction("Add level"):
            doc.create_level("Level 3", 8.0)
        assert doc.undo() == "Add level"
        assert doc.get_level_by_name("Level 3") is None
        assert doc.transaction_log == []

    def test_undo_history_is_bounded(self, doc):
        doc.undo_limit = 2
        for i in range(3, 6):
            with doc.transaction(f"Add level {i}"):
                doc.create_level(f"Level {i}", i * 4.0)
        assert doc.transaction_log == ["Add level 3", "Add level 4", "Add level 5"]
        assert doc.undo() == "Add level 5"
        assert doc.undo() == "Add level 4"
        with pytest.raises(TransactionError, match="Nothing to undo"):
            doc.undo()
        assert doc.get_level_by_name("Level 3") is not None
        assert doc.transaction_log == ["Add level 3"]

    def test_undo_empty(self, doc):
        with pytest.raises(TransactionError, match="Nothing to undo"):
            doc.undo()

    def test_save_with_open_transaction_rejected(self, doc, tmp_path):
        with doc.transaction("Open"):
            with pytest.raises(TransactionError):
                doc.save(tmp_path / "doc.json")


class TestWalls:
    def test_create_wall_uses_default_type(self, doc):
        with doc.transaction("Wall"):
            wall = doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
        assert wall.width == 0.2
        assert wall.height == doc.default_unconnected_height
        assert wall.top_level_id is None
        assert wall.structural is False

    def test_top_constraint_sets_height(self, doc):
        with doc.transaction("Wall"):
            wall = doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
            doc.set_wall_top_level(wall, _level(doc, "Level 2"))
        assert wall.height == 4.0
        assert wall.top_level_id == _level(doc, "Level 2").element_id

    def test_top_constraint_below_base_rejected(self, doc):
        with pytest.raises(InvalidOperationError, match="not above"):
            with doc.transaction("Wall"):
                wall = doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 2"))
                doc.set_wall_top_level(wall, _level(doc, "Level 1"))
        assert doc.walls == []

    def test_sloped_line_rejected(self, doc):
        line = Line3D.create_bound(Point3D(x=0, y=0, z=0), Point3D(x=5, y=0, z=1))
        with pytest.raises(InvalidOperationError, match="horizontal"):
            with doc.transaction("Wall"):
                doc.create_wall(line, _level(doc, "Level 1"))

    def test_unknown_level_rejected(self, doc):
        with pytest.raises(ElementNotFoundError):
            with doc.transaction("Wall"):
                doc.create_wall(_line(0, 0, 5, 0), Level(name="Elsewhere"))

    def test_duplicate_level_name_rejected(self, doc):
        with pytest.raises(InvalidOperationError, match="already exists"):
            with doc.transaction("Level"):
                doc.create_level("Level 1", 0.0)


class TestFamilyInstances:
    def _wall(self, doc) -> Wall:
        with doc.transaction("Wall"):
            wall = doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
            doc.set_wall_top_level(wall, _level(doc, "Level 2"))
        return wall

    def test_inactive_symbol_rejected(self, doc):
        wall = self._wall(doc)
        with pytest.raises(InvalidOperationError, match="not active"):
            with doc.transaction("Door"):
                doc.create_family_instance(
                    Point3D(x=2.5, y=0), doc.family_symbols[0], wall, _level(doc, "Level 1")
                )

    def test_place_window_with_sill(self, doc):
        wall = self._wall(doc)
        window_type = doc.family_symbols[1]
        with doc.transaction("Window"):
            doc.activate_symbol(window_type)
            window = doc.create_family_instance(
                Point3D(x=2.5, y=0, z=1.5), window_type, wall, _level(doc, "Level 1")
            )
        assert window.category == BuiltInCategory.WINDOWS
        assert window.sill_height == pytest.approx(1.5)
        assert window.host_wall_id == wall.element_id
        assert doc.hosted_instances(wall) == [window]

    def test_point_off_wall_rejected(self, doc):
        wall = self._wall(doc)
        door_type = doc.family_symbols[0]
        with pytest.raises(InvalidOperationError, match="not on host wall"):
            with doc.transaction("Door"):
                doc.activate_symbol(door_type)
                doc.create_family_instance(
                    Point3D(x=2.5, y=1.0), door_type, wall, _level(doc, "Level 1")
                )
        assert doc.family_instances == []
        assert doc.family_symbols[0].is_active is False

    def test_point_inside_wall_body_accepted(self, doc):
        wall = self._wall(doc)
        door_type = doc.family_symbols[0]
        with doc.transaction("Door"):
            doc.activate_symbol(door_type)
            door = doc.create_family_instance(
                Point3D(x=2.5, y=0.1), door_type, wall, _level(doc, "Level 1")
            )
        assert door.host_wall_id == wall.element_id

    def test_missing_symbol(self, doc):
        wall = self._wall(doc)
        with pytest.raises(ElementNotFoundError):
            with doc.transaction("Door"):
                doc.create_family_instance(
                    Point3D(x=2.5, y=0), None, wall, _level(doc, "Level 1")
                )


class TestCollector:
    def test_of_class(self, doc):
        levels = doc.collect().of_class(Level).to_list()
        assert [lv.name for lv in levels] == ["Level 1", "Level 2"]

    def test_of_category(self, doc):
        windows = doc.collect().of_class(FamilySymbol).of_category(BuiltInCategory.WINDOWS)
        assert len(windows) == 1
        assert windows.first().family_name == "M_Fixed"

    def test_where_and_first(self, doc):
        roof_type = (
            doc.collect()
            .of_class(RoofType)
            .where(lambda t: t.family_name == "Basic Roof")
            .first()
        )
        assert roof_type.name == "Generic - 125mm"

    def test_first_on_empty(self, doc):
        assert doc.collect().of_class(Wall).first() is None

    def test_order_by(self, doc):
        with doc.transaction("Levels"):
            doc.create_level("A Basement", -3.0)
        names = [lv.name for lv in doc.collect().of_class(Level).order_by(lambda lv: lv.name)]
        assert names == ["A Basement", "Level 1", "Level 2"]

    def test_get_element(self, doc):
        level = doc.levels[0]
        assert doc.get_element(level.element_id) is level
        assert doc.get_element("does-not-exist") is None


class TestFileIO:
    def test_save_and_load(self, doc, tmp_path):
        with doc.transaction("Wall"):
            doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
        path = doc.save(tmp_path / "nested" / "doc.json")
        loaded = Document.load(path)
        assert loaded.title == "Test"
        assert len(loaded.walls) == 1
        assert loaded.walls[0].element_id == doc.walls[0].element_id
        assert loaded.roof_types[0].name == "Типовой - 400мм"

    def test_loaded_document_has_no_history(self, doc, tmp_path):
        with doc.transaction("Wall"):
            doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
        loaded = Document.load(doc.save(tmp_path / "doc.json"))
        assert loaded.transaction_log == []
        assert not loaded.is_modifiable


class TestSummary:
    def test_counts_per_level(self, doc):
        with doc.transaction("Wall"):
            doc.create_wall(_line(0, 0, 5, 0), _level(doc, "Level 1"))
        text = doc.summary()
        assert "Levels: 2" in text
        assert "Walls: 1, Doors: 0, Windows: 0, Roofs: 0" in text
