"""Tests for the materials catalog."""

import pytest

from ellen_core.data import Material
from ellen_core.materials import MaterialCatalog, dedupe_materials, material_from_record


class TestMaterialFromRecord:
    def test_catalog_row(self) -> None:
        material = material_from_record(
            {
                "id": 3,
                "material": " Gallium ",
                "symbol": "Ga",
                "short_summary": "Semiconductor input",
                "material_card_color": "#ffaa00",
                "supply_score": 5,
                "ownership_score": 4.5,
                "is_score": True,
                "notes": "ignored",
            }
        )

        assert material.name == "Gallium"
        assert material.id == "3"
        assert material.symbol == "Ga"
        assert material.color == "#ffaa00"
        assert material.scores == {"supply_score": 5.0, "ownership_score": 4.5}

    def test_name_key_fallback(self) -> None:
        assert material_from_record({"name": "Nickel"}).name == "Nickel"

    def test_missing_name_raises(self) -> None:
        with pytest.raises(ValueError, match="no name"):
            material_from_record({"symbol": "Xx"})


def test_dedupe_keeps_first_occurrence() -> None:
    first = Material(name="Lithium", id="1")
    result = dedupe_materials([first, Material(name="LITHIUM", id="2"), Material(name="Tin")])
    assert result == [first, Material(name="Tin")]


class TestMaterialCatalog:
    @pytest.fixture
    def catalog(self) -> MaterialCatalog:
        return MaterialCatalog(
            [
                Material(name="Lithium", id="1"),
                Material(name="Rare Earth Elements", id="2"),
                Material(name="Tin", id="3"),
            ]
        )

    def test_len(self, catalog: MaterialCatalog) -> None:
        assert len(catalog) == 3

    def test_exact_lookup_ignores_case(self, catalog: MaterialCatalog) -> None:
        assert catalog.lookup("  lithium ") == Material(name="Lithium", id="1")

    def test_partial_lookup(self, catalog: MaterialCatalog) -> None:
        rare_earths = catalog.lookup("rare earth")
        assert rare_earths is not None
        assert rare_earths.id == "2"
        assert catalog.lookup("ithi") == Material(name="Lithium", id="1")

    def test_catalog_name_inside_query_is_not_a_match(self) -> None:
        catalog = MaterialCatalog(
            [Material(name="Tin", id="3"), Material(name="Platinum Group Metals", id="9")]
        )
        assert catalog.lookup("Platinum") == Material(name="Platinum Group Metals", id="9")
        assert MaterialCatalog([Material(name="Tin")]).lookup("Platinum") is None
        assert catalog.lookup("Lithium carbonate") is None

    def test_lookup_miss(self, catalog: MaterialCatalog) -> None:
        assert catalog.lookup("Vibranium") is None
        assert catalog.lookup("") is None

    def test_resolve_skips_misses_and_duplicates(self, catalog: MaterialCatalog) -> None:
        resolved = catalog.resolve(["tin", "Vibranium", "TIN", "lithium"])
        assert [m.id for m in resolved] == ["3", "1"]

    def test_mentioned_in_matches_whole_words(self, catalog: MaterialCatalog) -> None:
        text = "Lithium demand rises while tinplate and TIN exports fall."
        assert [m.name for m in catalog.mentioned_in(text)] == ["Lithium", "Tin"]
        assert catalog.mentioned_in("Destination markets") == []

    async def test_from_store(self) -> None:
        class FakeMaterialStore:
            async def list_materials(self) -> list[Material]:
                return [Material(name="Cobalt")]

        catalog = await MaterialCatalog.from_store(FakeMaterialStore())
        assert catalog.lookup("cobalt") == Material(name="Cobalt")
