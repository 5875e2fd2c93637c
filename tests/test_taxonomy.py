"""Tests for taxonomy caching and import."""

import pytest

from costpool.exceptions import DefinitionsMissing, InvalidTaxonomy
from costpool.models import Taxonomy
from costpool.taxonomy import TaxonomyCache, import_taxonomy, load_taxonomy_csv, load_taxonomy_file


class TestTaxonomyCache:
    def test_fetches_once(self, seeded_store, monkeypatch):
        calls = []
        original = seeded_store.get_definitions

        def counting_get(document_id):
            calls.append(document_id)
            return original(document_id)

        monkeypatch.setattr(seeded_store, "get_definitions", counting_get)
        cache = TaxonomyCache(seeded_store)

        first = cache.get()
        second = cache.get()

        assert first is second
        assert calls == ["hierarchical"]

    def test_missing_record_raises(self, store):
        with pytest.raises(DefinitionsMissing):
            TaxonomyCache(store).get()

    def test_empty_record_raises(self, store):
        store.save_definitions("hierarchical", {})

        with pytest.raises(DefinitionsMissing):
            TaxonomyCache(store).get()

    def test_invalidate_picks_up_changes(self, seeded_store, taxonomy_data):
        cache = TaxonomyCache(seeded_store)
        assert "Marketing" not in cache.get()

        seeded_store.save_definitions("hierarchical", {
            **taxonomy_data,
            "Marketing": {"definition": "Promotion.", "sub_pools": [{"name": "Ads", "definition": "Paid ads."}]},
        })
        assert "Marketing" not in cache.get()

        cache.invalidate()
        assert "Marketing" in cache.get()

    def test_malformed_record_raises(self, store):
        store.save_definitions("hierarchical", {"Facilities": ["Rent", "Utilities"]})

        with pytest.raises(InvalidTaxonomy):
            TaxonomyCache(store).get()


class TestTaxonomyModel:
    def test_round_trip_preserves_order(self, taxonomy_data):
        taxonomy = Taxonomy.from_dict(taxonomy_data)

        assert taxonomy.to_dict() == taxonomy_data
        assert taxonomy.pool_names() == ["Facilities", "Technology"]
        assert taxonomy.pool("Facilities").sub_pool_names() == ["Rent", "Utilities"]

    def test_valid_pairs(self, taxonomy):
        assert taxonomy.is_valid_pair("Facilities", "Rent")
        assert taxonomy.is_valid_pair("Unclassified", "Unclassified")
        assert not taxonomy.is_valid_pair("Facilities", "Software")
        assert not taxonomy.is_valid_pair("Unclassified", "Rent")


class TestTaxonomyImport:
    def test_csv_import(self, tmp_path):
        csv_path = tmp_path / "cost_definitions_hierarchical.csv"
        csv_path.write_text(
            "\ufeffcost_pool, cost_pool_definition ,cost_sub_pool,cost_sub_pool_definition\n"
            "Facilities,Buildings,Rent,Office leases\n"
            "Facilities,ignored second definition,Utilities,Power and water\n"
            ",,Orphan,No pool\n"
            "Technology,IT,Software,Licenses\n",
            encoding="utf-8",
        )

        taxonomy = load_taxonomy_csv(csv_path)

        assert taxonomy.to_dict() == {
            "Facilities": {
                "definition": "Buildings",
                "sub_pools": [
                    {"name": "Rent", "definition": "Office leases"},
                    {"name": "Utilities", "definition": "Power and water"},
                ],
            },
            "Technology": {
                "definition": "IT",
                "sub_pools": [{"name": "Software", "definition": "Licenses"}],
            },
        }

    def test_csv_missing_columns(self, tmp_path):
        csv_path = tmp_path / "defs.csv"
        csv_path.write_text("pool,sub_pool\nFacilities,Rent\n", encoding="utf-8")

        with pytest.raises(InvalidTaxonomy):
            load_taxonomy_csv(csv_path)

    def test_yaml_import(self, tmp_path, taxonomy_data):
        yaml_path = tmp_path / "taxonomy.yaml"
        yaml_path.write_text(
            "data:\n"
            "  Facilities:\n"
            "    definition: Costs of buildings and physical space.\n"
            "    sub_pools:\n"
            "      - name: Rent\n"
            "        definition: Lease payments for office space.\n",
            encoding="utf-8",
        )

        taxonomy = load_taxonomy_file(yaml_path)

        assert taxonomy.pool_names() == ["Facilities"]
        assert taxonomy.has_sub_pool("Facilities", "Rent")

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(InvalidTaxonomy):
            load_taxonomy_file(tmp_path / "taxonomy.json")

    def test_import_saves_record(self, tmp_path, store):
        csv_path = tmp_path / "defs.csv"
        csv_path.write_text(
            "cost_pool,cost_pool_definition,cost_sub_pool,cost_sub_pool_definition\n"
            "Facilities,Buildings,Rent,Office leases\n",
            encoding="utf-8",
        )

        import_taxonomy(csv_path, store)

        assert TaxonomyCache(store).get().has_sub_pool("Facilities", "Rent")
