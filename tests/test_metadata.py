"""Tests for MetadataIndex and TSV loading."""

import io

import pandas as pd
import pytest

from phylo_explorer.core.metadata import MetadataIndex, read_metadata_tsv


class TestMetadataIndexBuild:
    def test_indexes_by_accession(self, country_index):
        assert len(country_index) == 3
        assert country_index.lookup("A1")["Country"] == "USA"
        assert "A3" in country_index

    def test_lookup_miss_returns_none(self, country_index):
        assert country_index.lookup("nope") is None
        assert country_index.get("nope", {}) == {}

    def test_drops_records_without_accession(self):
        index = MetadataIndex.build([
            {"accessionVersion": "A1", "Country": "USA"},
            {"Country": "Canada"},
            {"accessionVersion": "", "Country": "Mexico"},
        ])
        assert list(index) == ["A1"]

    def test_last_write_wins(self):
        index = MetadataIndex.build([
            {"accessionVersion": "A1", "Country": "USA"},
            {"accessionVersion": "A1", "Country": "Canada"},
        ])
        assert len(index) == 1
        assert index.lookup("A1")["Country"] == "Canada"

    def test_records_are_read_only(self, country_index):
        with pytest.raises(TypeError):
            country_index.lookup("A1")["Country"] = "Mexico"

    def test_source_mutation_does_not_leak(self):
        rec = {"accessionVersion": "A1", "Country": "USA"}
        index = MetadataIndex.build([rec])
        rec["Country"] = "Canada"
        assert index.lookup("A1")["Country"] == "USA"

    def test_fields_in_first_seen_order(self):
        index = MetadataIndex.build([
            {"accessionVersion": "A1", "Country": "USA"},
            {"accessionVersion": "A2", "Host": "Human", "Country": "USA"},
        ])
        assert index.fields == ("accessionVersion", "Country", "Host")

    def test_empty_index_is_falsy(self):
        assert not MetadataIndex.build([])
        assert not MetadataIndex()

    def test_accepts_generator(self):
        gen = ({"accessionVersion": f"A{i}"} for i in range(3))
        assert len(MetadataIndex.build(gen)) == 3


class TestMetadataIndexValidation:
    def test_rejects_single_mapping(self):
        with pytest.raises(TypeError, match="sequence of metadata records"):
            MetadataIndex.build({"accessionVersion": "A1"})

    def test_rejects_non_mapping_entries(self):
        with pytest.raises(TypeError, match="Non-mapping"):
            MetadataIndex.build([{"accessionVersion": "A1"}, "A2"])


class TestMetadataIndexFromDataFrame:
    def test_basic(self):
        df = pd.DataFrame({
            "accessionVersion": ["A1", "A2"],
            "Country": ["USA", None],
            "Year": [2020, 2021],
        })
        index = MetadataIndex.from_dataframe(df)
        assert index.lookup("A1")["Year"] == "2020"
        assert "Country" not in index.lookup("A2")

    def test_requires_accession_column(self):
        df = pd.DataFrame({"Country": ["USA"]})
        with pytest.raises(ValueError, match="accessionVersion"):
            MetadataIndex.from_dataframe(df)

    def test_rejects_non_dataframe(self):
        with pytest.raises(TypeError, match="DataFrame"):
            MetadataIndex.from_dataframe([{"accessionVersion": "A1"}])


class TestReadMetadataTsv:
    def test_reads_strings(self):
        text = "accessionVersion\tCountry\tYear\nA1\tUSA\t2020\nA2\tCanada\t2021\n"
        records = read_metadata_tsv(io.StringIO(text))
        assert records == [
            {"accessionVersion": "A1", "Country": "USA", "Year": "2020"},
            {"accessionVersion": "A2", "Country": "Canada", "Year": "2021"},
        ]

    def test_skips_rows_with_missing_fields(self):
        text = "accessionVersion\tCountry\tHost\nA1\tUSA\tHuman\nA2\tCanada\nA3\tMexico\tBat\n"
        records = read_metadata_tsv(io.StringIO(text))
        assert [r["accessionVersion"] for r in records] == ["A1", "A3"]

    def test_skips_rows_with_extra_fields(self):
        text = "accessionVersion\tCountry\nA1\tUSA\nA2\tCanada\textra\nA3\tMexico\n"
        records = read_metadata_tsv(io.StringIO(text))
        assert [r["accessionVersion"] for r in records] == ["A1", "A3"]

    def test_keeps_empty_values(self):
        text = "accessionVersion\tCountry\tHost\nA1\t\tHuman\n"
        records = read_metadata_tsv(io.StringIO(text))
        assert records[0]["Country"] == ""
