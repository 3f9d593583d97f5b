"""テスト共通のフィクスチャ."""

import io
import zipfile
from pathlib import Path

import pytest

from awin_feed.models import FeedSource

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FEED_HEADER = (
    "ean,product_GTIN,product_name,description,aw_image_url,store_price,"
    "aw_deep_link,aw_product_id,search_price,merchant_name,merchant_id,currency,"
    "merchant_deep_link,last_updated,display_price,stock_status"
)

WIDGET_ROW = (
    "4006381333931,,Widget,A nice widget,,9.99,http://x/deep,123,14.99,Acme,1,EUR,"
    "http://x/merchant,2020-01-01,14.99,in stock"
)


@pytest.fixture
def feed_source(tmp_path):
    """tmp_path をキャッシュディレクトリにした FeedSource."""
    return FeedSource(
        api_key="test-key",
        feed_id="4242",
        partner_name="AWIN Test",
        cache_dir=tmp_path / "productdb",
    )


@pytest.fixture
def sample_feed_bytes():
    """tests/fixtures/feed_sample.csv の内容."""
    return (FIXTURES_DIR / "feed_sample.csv").read_bytes()


@pytest.fixture
def feed_header():
    return FEED_HEADER


@pytest.fixture
def widget_row():
    """在庫あり・画像なしの Widget 行."""
    return WIDGET_ROW


@pytest.fixture
def widget_feed_bytes():
    """ヘッダー + Widget 1 行だけのフィード."""
    return (FEED_HEADER + "\n" + WIDGET_ROW + "\n").encode("utf-8")


@pytest.fixture
def make_zip():
    """{エントリ名: 内容} から zip のバイト列を作る関数."""

    def _make_zip(entries: dict) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, content in entries.items():
                zf.writestr(name, content)
        return buf.getvalue()

    return _make_zip
