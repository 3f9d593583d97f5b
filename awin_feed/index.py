"""フィード CSV の解析と EAN 検索モジュール."""

from __future__ import annotations

import csv
import io
import logging
import math

from awin_feed.errors import FetchError, ParseError
from awin_feed.fetcher import FeedFetcher
from awin_feed.models import (
    FeedRecord,
    FeedSource,
    FetchFailed,
    Found,
    LookupOutcome,
    NotFound,
    OutOfStock,
    ProductAffiliateResult,
    StockStatus,
)
from awin_feed.store import FeedStore

logger = logging.getLogger(__name__)


def parse_feed(raw: bytes) -> dict[str, FeedRecord]:
    """フィード CSV を解析し、識別子 → FeedRecord の dict を返す.

    1 行目をヘッダーとして各行を列名に対応付ける。識別子は ean、空なら
    product_GTIN。どちらも空の行と列数がヘッダーと合わない行は読み飛ばす。
    同じ識別子が複数あれば後の行が優先される。
    """
    text = raw.decode("utf-8-sig", errors="replace")
    reader = csv.reader(io.StringIO(text, newline=""))

    header = next(reader, None)
    if not header:
        logger.warning("フィードにヘッダー行がありません")
        return {}

    records: dict[str, FeedRecord] = {}
    skipped = 0
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            # フィールド長超過などはその行だけ捨てて続行
            logger.warning("行をスキップ: line %d: %s", reader.line_num, e)
            skipped += 1
            continue
        if not row:
            continue
        try:
            record = _to_record(header, row, reader.line_num)
        except ParseError as e:
            logger.warning("行をスキップ: %s", e)
            skipped += 1
            continue
        if record is None:
            skipped += 1
            continue
        records[record.identifier] = record

    logger.info("フィード解析: %d 件 (スキップ %d 行)", len(records), skipped)
    return records


def _to_record(header: list[str], row: list[str], line_num: int) -> FeedRecord | None:
    """CSV の 1 行を FeedRecord にする. 識別子が無ければ None."""
    if len(row) != len(header):
        raise ParseError(
            f"line {line_num}: expected {len(header)} fields, got {len(row)}"
        )
    fields = dict(zip(header, row))

    identifier = fields.get("ean", "").strip() or fields.get("product_GTIN", "").strip()
    if not identifier:
        return None

    stock_raw = fields.get("stock_status", "")
    return FeedRecord(
        identifier=identifier,
        name=fields.get("product_name", ""),
        description=fields.get("description", ""),
        image_url=fields.get("aw_image_url") or None,
        deep_link=fields.get("aw_deep_link", ""),
        merchant_deep_link=fields.get("merchant_deep_link", ""),
        price=_parse_price(fields.get("search_price", "")),
        stock_status=StockStatus.from_raw(stock_raw),
        stock_status_raw=stock_raw,
        aw_product_id=fields.get("aw_product_id", ""),
        merchant_name=fields.get("merchant_name", ""),
        currency=fields.get("currency", ""),
        last_updated=fields.get("last_updated", ""),
    )


def _parse_price(value: str) -> float | None:
    """価格文字列を float にする. 0 以下・有限の数値でなければ None."""
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class FeedIndex:
    """キャッシュ済みフィードに対する EAN 検索.

    解析結果はキャッシュファイルの (inode, mtime) をキーに保持し、ファイルが
    差し替えられたら再解析する。
    """

    def __init__(
        self,
        source: FeedSource,
        store: FeedStore | None = None,
        fetcher: FeedFetcher | None = None,
    ):
        self.source = source
        self.store = store or FeedStore(source)
        self.fetcher = fetcher or FeedFetcher(source)
        # ((st_ino, st_mtime_ns), records) のタプルを丸ごと差し替える
        self._parsed: tuple[tuple[int, int], dict[str, FeedRecord]] | None = None

    def lookup(self, identifier: str) -> LookupOutcome:
        """識別子 (EAN/GTIN) でフィードを検索する.

        キャッシュが古ければ先にフィードを取り直す。

        Returns:
            Found / NotFound / OutOfStock / FetchFailed のいずれか。
        """
        try:
            if self.store.is_stale():
                logger.info("キャッシュが古いため再取得: feed_id=%s", self.source.feed_id)
                self.fetcher.fetch_and_install(self.store)
            records = self._load_records()
        except FetchError as e:
            # StorageError (キャッシュの読み出し失敗) も含む
            logger.warning("フィード更新失敗: feed_id=%s, error=%s", self.source.feed_id, e)
            return FetchFailed(str(e))

        if records is None:
            return FetchFailed("no content available")

        record = records.get(identifier)
        if record is None:
            logger.info("EAN %s は AWIN フィードにありません", identifier)
            return NotFound(identifier)

        if record.stock_status is StockStatus.OUT_OF_STOCK:
            logger.info("EAN %s は在庫切れ", identifier)
            return OutOfStock(identifier)

        return Found(self._to_result(record))

    def get_product_affiliate_data(self, identifier: str) -> ProductAffiliateResult | None:
        """lookup の簡易版. Found 以外は None."""
        outcome = self.lookup(identifier)
        if isinstance(outcome, Found):
            return outcome.result
        return None

    def _load_records(self) -> dict[str, FeedRecord] | None:
        version = self.store.version()
        if version is None:
            return None

        cached = self._parsed
        if cached is not None and cached[0] == version:
            return cached[1]

        raw = self.store.read_raw()
        if raw is None:
            return None
        records = parse_feed(raw)
        self._parsed = (version, records)
        return records

    def _to_result(self, record: FeedRecord) -> ProductAffiliateResult:
        return ProductAffiliateResult(
            ean=record.identifier,
            partner_name=self.source.partner_name,
            name=record.name,
            description=record.description,
            link=record.link,
            image_url=record.image_url or None,
            best_offer=record.price,
        )
