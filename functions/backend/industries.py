"""
Industry category catalogue.

Rows are flat (``level`` 1 for a primary category, 2 for a secondary one) and
are grouped into ``{primaryCategories, secondaryCategories}`` for clients.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Protocol

from dacite import Config, from_dict

from backend.rest import RestTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndustryRecord:
    id: str
    primary_category: str
    secondary_category: str
    level: int
    sort_order: int

    @classmethod
    def from_row(cls, row: dict) -> "IndustryRecord":
        data = dict(row)
        data["id"] = str(data.get("id", ""))
        data["secondary_category"] = data.get("secondary_category") or ""
        return from_dict(data_class=cls, data=data, config=Config(check_types=False))

    def as_row(self) -> dict:
        return asdict(self)


def _default_catalogue() -> list[IndustryRecord]:
    food = [
        "地方菜", "东南亚菜", "自助餐", "火锅", "西餐", "面包甜点", "饮品",
        "快餐小吃", "音乐餐厅", "热门/特色菜", "日韩料理", "生鲜果蔬", "美食城",
        "食品滋补", "其他美食",
    ]
    shopping = [
        "3C数码", "服饰鞋帽", "美妆个护", "日用商超", "家居建材", "交通工具",
        "鲜花绿植", "配饰", "特色集市", "百货商超", "珠宝首饰", "母婴用品",
        "其他购物",
    ]
    records = [
        IndustryRecord("food_primary", "美食", "", 1, 1),
        IndustryRecord("shopping_primary", "购物", "", 1, 2),
    ]
    seq = 0
    for primary, secondaries in (("美食", food), ("购物", shopping)):
        for secondary in secondaries:
            seq += 1
            records.append(IndustryRecord(str(seq), primary, secondary, 2, seq))
    return records


DEFAULT_INDUSTRIES: tuple[IndustryRecord, ...] = tuple(_default_catalogue())


def group_industries(records: Iterable[IndustryRecord]) -> dict:
    primaries: list[str] = []
    grouped: dict[str, list[str]] = {}
    for record in sorted(records, key=lambda r: r.sort_order):
        if record.level not in (1, 2):
            continue
        primary = record.primary_category
        if primary not in grouped:
            primaries.append(primary)
            grouped[primary] = []
        if record.level == 2 and record.secondary_category:
            grouped[primary].append(record.secondary_category)
    for secondaries in grouped.values():
        secondaries.sort()
    return {"primaryCategories": primaries, "secondaryCategories": grouped}


class IndustryStore(Protocol):
    def list_all(self) -> list[IndustryRecord]:
        ...

    def replace_all(self, records: Iterable[IndustryRecord]) -> int:
        ...


class InMemoryIndustryStore:
    def __init__(self):
        self.records: list[IndustryRecord] = []

    def list_all(self) -> list[IndustryRecord]:
        return sorted(self.records, key=lambda r: r.sort_order)

    def replace_all(self, records: Iterable[IndustryRecord]) -> int:
        self.records = list(records)
        return len(self.records)


class RestIndustryStore:
    def __init__(self, table: RestTable):
        self.table = table

    def list_all(self) -> list[IndustryRecord]:
        rows = self.table.select(order="sort_order.asc")
        return [IndustryRecord.from_row(row) for row in rows]

    def replace_all(self, records: Iterable[IndustryRecord]) -> int:
        rows = [record.as_row() for record in records]
        self.table.delete({"id": "not.is.null"})
        self.table.insert(rows)
        return len(rows)


class IndustryCatalog:
    def __init__(self, store: IndustryStore):
        self.store = store

    def grouped(self) -> dict:
        """Group the stored catalogue, seeding the defaults on first read."""
        records = self.store.list_all()
        if not records:
            logger.info("Industry catalogue empty, seeding defaults")
            self.reseed()
            records = self.store.list_all()
        grouped = group_industries(records)
        logger.info(
            "Grouped %d industries into %d primaries",
            len(records),
            len(grouped["primaryCategories"]),
        )
        return grouped

    def reseed(self) -> int:
        count = self.store.replace_all(DEFAULT_INDUSTRIES)
        logger.info("Seeded %d industries", count)
        return count
