"""AWIN 商品フィードのダウンロード・展開モジュール.

処理フロー:
  1. フィード ID・言語・カラム一覧を含むダウンロード URL を組み立てる
  2. GET で zip 圧縮された CSV を取得
  3. 一時 zip ファイルとしてキャッシュディレクトリに保存
  4. 展開 (エントリは 1 件のみ) して FeedStore.install で差し替え
  5. 一時 zip ファイルを削除
"""

from __future__ import annotations

import logging
import os
import tempfile
import zipfile
import zlib
from pathlib import Path

import requests

from awin_feed.config import (
    AWIN_DOWNLOAD_PATH,
    AWIN_ENDPOINT,
    FEED_COLUMNS,
    REQUEST_TIMEOUT,
)
from awin_feed.errors import ExtractError, RemoteError, StorageError, TransportError
from awin_feed.models import FeedSource
from awin_feed.store import FeedStore

logger = logging.getLogger(__name__)


def build_download_url(source: FeedSource) -> str:
    """フィードのダウンロード URL を組み立てる."""
    path = AWIN_DOWNLOAD_PATH.format(
        apikey=source.api_key,
        language=source.language,
        feed_id=source.feed_id,
        columns=",".join(FEED_COLUMNS),
    )
    return AWIN_ENDPOINT + path


def _mask_api_key(url: str, api_key: str) -> str:
    """ログ出力用に URL 中の API キーを伏せる."""
    if not api_key:
        return url
    return url.replace(api_key, "***")


def extract_single_entry(archive_path: Path) -> bytes:
    """zip アーカイブから唯一のエントリを読み出す.

    Raises:
        ExtractError: アーカイブが壊れている、またはファイルエントリが 1 件でない場合。
        StorageError: アーカイブを読めない場合。
    """
    try:
        with zipfile.ZipFile(archive_path) as archive:
            entries = [info for info in archive.infolist() if not info.is_dir()]
            if len(entries) != 1:
                raise ExtractError(
                    f"expected exactly one entry in feed archive, found {len(entries)}"
                )
            return archive.read(entries[0])
    except (zipfile.BadZipFile, zlib.error, EOFError) as e:
        raise ExtractError(f"corrupt feed archive: {e}") from e
    except (zipfile.LargeZipFile, NotImplementedError) as e:
        raise ExtractError(f"unsupported feed archive: {e}") from e
    except OSError as e:
        raise StorageError(f"cannot read feed archive {archive_path}: {e}") from e


class FeedFetcher:
    """AWIN からフィードを取得し、FeedStore のキャッシュを差し替える."""

    product_id_type = "EAN"

    def __init__(
        self,
        source: FeedSource,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.source = source
        # None なら requests.get を直接使う
        self.session = session
        self.timeout = timeout

    def download(self) -> bytes:
        """フィードの zip アーカイブを取得する.

        Returns:
            レスポンスボディ (zip)。

        Raises:
            TransportError: 通信に失敗した場合。
            RemoteError: 2xx 以外のステータスが返った場合。
        """
        url = build_download_url(self.source)
        logger.debug("フィード取得: %s", _mask_api_key(url, self.source.api_key))

        try:
            resp = (self.session or requests).get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("フィード取得失敗: feed_id=%s, error=%s", self.source.feed_id, e)
            raise TransportError(f"AWIN request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            logger.error(
                "AWIN API エラー: feed_id=%s, status=%d %s",
                self.source.feed_id, resp.status_code, resp.reason,
            )
            raise RemoteError(resp.status_code, resp.reason or "")

        return resp.content

    def fetch_and_install(self, store: FeedStore) -> None:
        """フィードを取得・展開し、キャッシュファイルを差し替える.

        失敗時は既存のキャッシュファイルには触れない。

        Raises:
            FetchError: TransportError / RemoteError / ExtractError / StorageError。
        """
        body = self.download()

        directory = store.ensure_directory()
        try:
            fd, archive_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self.source.file_stem}.", suffix=".zip"
            )
        except OSError as e:
            raise StorageError(f"cannot create scratch archive in {directory}: {e}") from e

        archive_path = Path(archive_name)
        try:
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(body)
            except OSError as e:
                raise StorageError(f"cannot write scratch archive {archive_path}: {e}") from e

            content = extract_single_entry(archive_path)
            store.install(content)
        finally:
            try:
                archive_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("一時アーカイブ削除失敗: %s (%s)", archive_path, e)

        logger.info(
            "フィード更新完了: feed_id=%s, %d bytes (zip %d bytes)",
            self.source.feed_id, len(content), len(body),
        )
