import json

import pytest

from kfin_lookup.providers import SnapshotProvider
from kfin_lookup.records import CompanyRecord
from kfin_lookup.resolver import CorpCodeResolver, create_corp_code_resolver, normalize_name


@pytest.fixture
def resolver(companies):
    r = CorpCodeResolver()
    r.load(companies)
    return r


def test_counts(resolver):
    assert resolver.is_loaded
    assert resolver.count == 10
    assert resolver.listed_count == 9


def test_empty_resolver_resolves_nothing():
    r = CorpCodeResolver()
    assert not r.is_loaded
    assert r.resolve("삼성전자") is None
    assert r.search_by_prefix("삼성") == []


def test_resolve_exact_ticker(resolver):
    res = resolver.resolve("005930")
    assert res.registry_code == "00126380"
    assert res.name == "삼성전자"
    assert res.match_kind == "exact_ticker"
    assert res.confidence == 1.0
    assert res.is_exact


def test_resolve_exact_registry_code(resolver):
    res = resolver.resolve("00104833")
    assert res.name == "SK하이닉스"
    assert res.ticker == "000660"
    assert res.match_kind == "exact_registry"


def test_unlisted_company_by_registry_code(resolver):
    res = resolver.resolve("00999999")
    assert res.ticker is None
    assert res.name == "비상장기업예시"


def test_unknown_numeric_inputs_do_not_fall_through(resolver):
    assert resolver.resolve("999999") is None
    assert resolver.resolve("12345678") is None


def test_resolve_exact_name(resolver):
    res = resolver.resolve("삼성전자")
    assert res.registry_code == "00126380"
    assert res.match_kind == "exact_name"
    assert res.confidence == 1.0
    assert res.alternatives == ()


@pytest.mark.parametrize("text", ["  카카오  ", "(주)카카오", "㈜카카오", "카카오(주)"])
def test_name_normalization(resolver, text):
    res = resolver.resolve(text)
    assert res.registry_code == "00164529"
    assert res.match_kind == "exact_name"


def test_normalize_name():
    assert normalize_name("  삼성   전자 ") == "삼성 전자"
    assert normalize_name("(주) 카카오") == "카카오"
    assert normalize_name("㈜") == ""


def test_resolve_fuzzy_typo(resolver):
    res = resolver.resolve("삼성젼자")
    assert res.registry_code == "00126380"
    assert res.match_kind == "fuzzy_name"
    assert not res.is_exact
    assert 0.8 < res.confidence < 1.0
    assert res.confidence == pytest.approx(10 / 11)


def test_fuzzy_alternatives_are_ranked_and_above_threshold(resolver):
    res = resolver.resolve("삼성젼자")
    sims = [a.similarity for a in res.alternatives]
    assert len(sims) <= 5
    assert sims == sorted(sims, reverse=True)
    assert all(0.5 < s <= res.confidence for s in sims)
    assert res.registry_code not in {a.registry_code for a in res.alternatives}


@pytest.mark.parametrize("text", ["", "   ", "ㄱ", "ab", "존재하지않는회사이름입니다"])
def test_resolve_returns_none(resolver, text):
    assert resolver.resolve(text) is None


def test_fuzzy_prefers_listed_on_equal_similarity():
    r = CorpCodeResolver()
    r.load(
        [
            CompanyRecord("30000001", "가나다라"),
            CompanyRecord("30000002", "가나다마", "300002"),
        ]
    )
    res = r.resolve("가나다바")
    assert res.registry_code == "30000002"
    assert [a.registry_code for a in res.alternatives] == ["30000001"]
    assert res.confidence == res.alternatives[0].similarity


def test_fuzzy_alternatives_capped_and_stable():
    r = CorpCodeResolver()
    r.load([CompanyRecord(f"1000000{i}", f"테스트{i}", f"10000{i}") for i in range(1, 9)])
    res = r.resolve("테스트")
    assert res.name == "테스트1"
    assert [a.name for a in res.alternatives] == ["테스트2", "테스트3", "테스트4", "테스트5", "테스트6"]


def test_exact_name_prefers_listed_duplicate():
    r = CorpCodeResolver()
    r.load(
        [
            CompanyRecord("20000001", "대한전선"),
            CompanyRecord("20000002", "대한전선", "001440"),
        ]
    )
    res = r.resolve("대한전선")
    assert res.registry_code == "20000002"
    assert res.match_kind == "exact_name"
    assert len(res.alternatives) == 1
    assert res.alternatives[0].registry_code == "20000001"
    assert res.alternatives[0].similarity == 1.0


def test_custom_threshold():
    r = CorpCodeResolver(min_similarity=0.95)
    r.load([CompanyRecord("00126380", "삼성전자", "005930")])
    assert r.resolve("삼성젼자") is None


def test_search_by_prefix(resolver):
    names = [c.name for c in resolver.search_by_prefix("삼성")]
    assert names == ["삼성전자", "삼성SDI", "삼성바이오로직스", "삼성생명보험"]
    assert [c.name for c in resolver.search_by_prefix("삼성", limit=2)] == ["삼성전자", "삼성SDI"]
    assert resolver.search_by_prefix("") == []
    assert resolver.search_by_prefix("없는회사") == []


def test_direct_lookups(resolver):
    assert resolver.get_by_ticker("035420").name == "네이버"
    assert resolver.get_by_registry_code("00401731").name == "LG에너지솔루션"
    assert resolver.get_by_ticker("999999") is None
    assert resolver.get_by_registry_code("00000000") is None


def test_load_replaces_previous_index(resolver):
    resolver.load([CompanyRecord("00000001", "새회사", "000001")])
    assert resolver.count == 1
    assert resolver.get_by_ticker("005930") is None
    assert resolver.resolve("000001").name == "새회사"


def test_json_snapshot_roundtrip(resolver, tmp_path):
    path = str(tmp_path / "nested" / "corp-codes.json")
    resolver.save_to_cache(path)

    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    assert raw[0] == {"corp_code": "00126380", "corp_name": "삼성전자", "stock_code": "005930", "modify_date": "20240101"}

    fresh = CorpCodeResolver()
    assert fresh.load_from_cache(path) is True
    assert fresh.count == 10
    assert fresh.get_by_registry_code("00999999").ticker is None
    assert fresh.resolve("005930").registry_code == "00126380"


def test_parquet_snapshot_roundtrip(resolver, tmp_path):
    path = str(tmp_path / "corp-codes.parquet")
    resolver.save_to_cache(path)

    fresh = CorpCodeResolver()
    assert fresh.load_from_cache(path) is True
    assert fresh.count == 10
    assert fresh.listed_count == 9
    assert fresh.get_by_ticker("000660").last_modified == "20240101"


def test_load_from_cache_missing_file(tmp_path):
    r = CorpCodeResolver()
    assert r.load_from_cache(str(tmp_path / "missing.json")) is False
    assert not r.is_loaded


@pytest.mark.parametrize(
    "content",
    ['{"corp_code": "00126380"}', "not json at all", "[]", '[{"corp_code": "00000001"}]'],
)
def test_load_from_cache_malformed_keeps_state(resolver, tmp_path, content):
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")

    assert resolver.load_from_cache(str(path)) is False
    assert resolver.count == 10
    assert resolver.resolve("삼성전자").registry_code == "00126380"


def test_load_from_provider(companies, tmp_path):
    path = str(tmp_path / "corp-codes.json")
    seed = CorpCodeResolver()
    seed.load(companies)
    seed.save_to_cache(path)

    r = CorpCodeResolver()
    r.load_from_provider(SnapshotProvider(path))
    assert r.count == 10


def test_create_corp_code_resolver(companies, tmp_path):
    assert not create_corp_code_resolver().is_loaded
    assert not create_corp_code_resolver(str(tmp_path / "missing.json")).is_loaded

    path = str(tmp_path / "corp-codes.json")
    seed = CorpCodeResolver()
    seed.load(companies)
    seed.save_to_cache(path)
    assert create_corp_code_resolver(path).count == 10


def test_exact_name_alternatives_are_capped():
    r = CorpCodeResolver()
    r.load([CompanyRecord(f"4000000{i}", "동명회사") for i in range(8)])
    res = r.resolve("동명회사")
    assert res.registry_code == "40000000"
    assert [a.registry_code for a in res.alternatives] == [f"4000000{i}" for i in range(1, 6)]
