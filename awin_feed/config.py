"""設定モジュール: 環境変数・定数定義.

認証情報 (API キー・フィード ID) を環境変数から読むのは CLI のみ。
ライブラリ側のクラスは FeedSource を受け取る。
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from awin_feed.models import FeedSource

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- AWIN product feed ---
AWIN_ENDPOINT = "https://productdata.awin.com"
AWIN_DOWNLOAD_PATH = (
    "/datafeed/download"
    "/apikey/{apikey}"
    "/language/{language}"
    "/fid/{feed_id}"
    "/columns/{columns}"
    "/format/csv"
    "/delimiter/%2C"
    "/compression/zip/"
)

# この順序でエクスポートされる。その他のカラムは AWIN のカラム仕様を参照
FEED_COLUMNS = (
    "ean",
    "product_GTIN",
    "product_name",
    "description",
    "aw_image_url",
    "store_price",
    "aw_deep_link",
    "aw_product_id",
    "search_price",
    "merchant_name",
    "merchant_id",
    "currency",
    "merchant_deep_link",
    "last_updated",
    "display_price",
    "stock_status",
)

DEFAULT_LANGUAGE = "de"
DEFAULT_PARTNER_NAME = "AWIN"

# --- キャッシュ ---
MAX_FEED_AGE_SECONDS = 24 * 60 * 60
CACHE_DIR = Path(os.environ.get("AWIN_CACHE_DIR", _PROJECT_ROOT / "tmp" / "productdb"))

# --- リクエスト設定 ---
REQUEST_TIMEOUT = float(os.environ.get("AWIN_REQUEST_TIMEOUT", "120"))  # 秒

# --- ログ ---
LOG_DIR = Path(os.environ.get("AWIN_LOG_DIR", _PROJECT_ROOT / "logs"))


def load_feed_source() -> FeedSource:
    """環境変数から FeedSource を組み立てる.

    Raises:
        KeyError: AWIN_API_KEY または AWIN_FEED_ID が未設定の場合。
    """
    return FeedSource(
        api_key=os.environ["AWIN_API_KEY"],
        feed_id=os.environ["AWIN_FEED_ID"],
        partner_name=os.environ.get("AWIN_PARTNER_NAME", DEFAULT_PARTNER_NAME),
        cache_dir=CACHE_DIR,
        language=os.environ.get("AWIN_LANGUAGE", DEFAULT_LANGUAGE),
    )
