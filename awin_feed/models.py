"""データモデル定義."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class FeedSource:
    """AWIN のフィード 1 件を表す. インスタンスの生存期間中は不変."""

    api_key: str
    feed_id: str  # AWIN の fid (プログラム ID)
    partner_name: str  # 結果に載せるアフィリエイトパートナー名
    cache_dir: Path
    language: str = "de"

    @property
    def file_stem(self) -> str:
        return f"awin-{self.feed_id}"

    @property
    def cache_path(self) -> Path:
        """展開済み CSV のキャッシュファイルパス."""
        return Path(self.cache_dir) / f"{self.file_stem}.csv"


class StockStatus(Enum):
    """フィードの stock_status カラム."""

    IN_STOCK = "in stock"
    OUT_OF_STOCK = "out of stock"
    OTHER = "other"  # 生の値は FeedRecord.stock_status_raw に残す

    @classmethod
    def from_raw(cls, raw: str) -> StockStatus:
        value = raw.strip()
        if value == cls.IN_STOCK.value:
            return cls.IN_STOCK
        if value == cls.OUT_OF_STOCK.value:
            return cls.OUT_OF_STOCK
        return cls.OTHER


@dataclass(frozen=True)
class FeedRecord:
    """フィード CSV の 1 行."""

    identifier: str  # EAN (空なら GTIN)
    name: str
    description: str
    image_url: str | None  # None = 画像なし
    deep_link: str  # aw_deep_link
    merchant_deep_link: str
    price: float | None  # search_price > 0 の場合のみ
    stock_status: StockStatus
    stock_status_raw: str
    aw_product_id: str = ""
    merchant_name: str = ""
    currency: str = ""
    last_updated: str = ""

    @property
    def link(self) -> str:
        """結果に載せるリンク. merchant_deep_link が空なら aw_deep_link."""
        return self.merchant_deep_link or self.deep_link


@dataclass(frozen=True)
class ProductAffiliateResult:
    """1 商品のアフィリエイト情報 (呼び出し元へ返す形)."""

    ean: str
    partner_name: str
    name: str
    description: str
    link: str
    image_url: str | None = None
    best_offer: float | None = None


@dataclass(frozen=True)
class Found:
    result: ProductAffiliateResult


@dataclass(frozen=True)
class NotFound:
    identifier: str


@dataclass(frozen=True)
class OutOfStock:
    identifier: str


@dataclass(frozen=True)
class FetchFailed:
    reason: str


LookupOutcome = Union[Found, NotFound, OutOfStock, FetchFailed]
