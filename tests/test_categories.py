"""Tests for the CSV category source."""

import pytest

from core.errors import RunFailure
from plugins.trendyol.categories import CsvCategorySource, parse_categories

CSV = """ana_kategori,alt_kategori,kategori,web_url
 Kadın , Giyim , Elbise , /elbise-x-c56

Erkek,Ayakkabı,Sneaker,erkek-sneaker-x-g2-c1172
broken,row
"""


def test_parse_categories():
    cats = parse_categories(CSV)

    assert [(c.primary_category, c.sub_category, c.category, c.path) for c in cats] == [
        ("KADIN", "Giyim", "Elbise", "/elbise-x-c56"),
        ("ERKEK", "Ayakkabı", "Sneaker", "/erkek-sneaker-x-g2-c1172"),
    ]


def test_parse_handles_bom_and_header_only():
    assert parse_categories("\ufeffa,b,c,d\n") == []


@pytest.mark.asyncio
async def test_source_rereads_file_each_load(tmp_path):
    path = tmp_path / "cats.csv"
    path.write_text("h1,h2,h3,h4\nKADIN,Giyim,Elbise,/a\n", encoding="utf-8")
    source = CsvCategorySource(str(path))

    assert len(await source.load()) == 1
    path.write_text("h1,h2,h3,h4\nKADIN,Giyim,Elbise,/a\nERKEK,Giyim,Gömlek,/b\n", encoding="utf-8")
    assert len(await source.load()) == 2


@pytest.mark.asyncio
async def test_missing_file_is_run_failure(tmp_path):
    with pytest.raises(RunFailure):
        await CsvCategorySource(str(tmp_path / "nope.csv")).load()
