import pytest

from kfin_lookup.records import CompanyRecord

# (corp_code, corp_name, stock_code)
TEST_MAPPINGS = [
    ("00126380", "삼성전자", "005930"),
    ("00164779", "삼성SDI", "006400"),
    ("00164742", "삼성바이오로직스", "207940"),
    ("00126186", "삼성생명보험", "032830"),
    ("00104833", "SK하이닉스", "000660"),
    ("00401731", "LG에너지솔루션", "373220"),
    ("00126308", "현대자동차", "005380"),
    ("00999999", "비상장기업예시", ""),
    ("00164529", "카카오", "035720"),
    ("00164800", "네이버", "035420"),
]


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def companies():
    return [CompanyRecord(registry_code=c, name=n, ticker=t, last_modified="20240101") for c, n, t in TEST_MAPPINGS]
