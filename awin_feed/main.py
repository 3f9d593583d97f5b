"""AWIN 商品フィード検索: メインエントリーポイント.

使い方:
  python -m awin_feed.main EAN [EAN ...]  (または awin-feed EAN ...)

処理フロー:
  1. 環境変数からフィード設定 (API キー・フィード ID・パートナー名) を読み込む
  2. キャッシュが無い、または 24 時間以上経過していればフィードを再取得
  3. EAN ごとに検索し、結果をログに出力
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime

from awin_feed.config import LOG_DIR, load_feed_source
from awin_feed.index import FeedIndex
from awin_feed.models import FetchFailed, Found, NotFound, OutOfStock


def setup_logging() -> None:
    """ロギングの初期設定."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / f"awin_feed_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def run(identifiers: list[str]) -> int:
    """メイン処理. FetchFailed が 1 件でもあれば 1 を返す."""
    setup_logging()
    logger = logging.getLogger(__name__)

    if not identifiers:
        logger.warning("EAN が指定されていません。終了します。")
        return 2

    source = load_feed_source()
    index = FeedIndex(source)
    logger.info("=== AWIN 検索 開始: feed_id=%s, %d 件 ===", source.feed_id, len(identifiers))

    exit_code = 0
    for identifier in identifiers:
        outcome = index.lookup(identifier)
        if isinstance(outcome, Found):
            r = outcome.result
            price = f"{r.best_offer:.2f}" if r.best_offer is not None else "-"
            logger.info("  %s → %s / %s / %s", identifier, r.name, price, r.link)
        elif isinstance(outcome, OutOfStock):
            logger.info("  %s → 在庫切れ", identifier)
        elif isinstance(outcome, NotFound):
            logger.info("  %s → 見つかりません", identifier)
        elif isinstance(outcome, FetchFailed):
            logger.error("  %s → フィード取得失敗: %s", identifier, outcome.reason)
            exit_code = 1

    logger.info("=== AWIN 検索 完了 ===")
    return exit_code


def main() -> None:
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
