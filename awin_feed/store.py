"""フィード CSV のローカルキャッシュ管理モジュール.

キャッシュは 1 フィードにつき 1 ファイル。更新は一時ファイルに書き出してから
os.replace で差し替えるため、読み手が書きかけのファイルを見ることはない。
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable

from awin_feed.config import MAX_FEED_AGE_SECONDS
from awin_feed.errors import StorageError
from awin_feed.models import FeedSource

logger = logging.getLogger(__name__)


class FeedStore:
    """1 フィード分のキャッシュファイルを所有する."""

    def __init__(
        self,
        source: FeedSource,
        *,
        max_age: float = MAX_FEED_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.max_age = max_age
        self._clock = clock

    @property
    def path(self) -> Path:
        return self.source.cache_path

    @property
    def directory(self) -> Path:
        return self.path.parent

    def is_stale(self) -> bool:
        """キャッシュが無い、または最終更新から max_age 秒以上経過していれば True.

        暦日ではなく経過時間で判定する。ちょうど 24 時間で True。

        Raises:
            StorageError: ファイルの状態を取得できない場合。
        """
        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            return True
        except OSError as e:
            raise StorageError(f"cannot stat cache file {self.path}: {e}") from e
        return self._clock() - mtime >= self.max_age

    def version(self) -> tuple[int, int] | None:
        """キャッシュファイルの (inode, mtime ナノ秒). ファイルが無ければ None.

        install は毎回新しいファイルを os.replace するので inode が変わる。
        mtime の分解能が粗いファイルシステムでも差し替えを検出できる。
        """
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"cannot stat cache file {self.path}: {e}") from e
        return st.st_ino, st.st_mtime_ns

    def read_raw(self) -> bytes | None:
        """キャッシュファイルの全内容を返す. ファイルが無ければ None.

        Raises:
            StorageError: ファイルを読めない場合 (権限不足・ディレクトリなど)。
        """
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"cannot read cache file {self.path}: {e}") from e

    def ensure_directory(self) -> Path:
        """キャッシュディレクトリを作成して返す.

        Raises:
            StorageError: ディレクトリを作成できない場合。
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create cache directory {self.directory}: {e}") from e
        return self.directory

    def install(self, content: bytes) -> None:
        """キャッシュファイルの内容を content にアトミックに置き換える.

        同じディレクトリの一時ファイルに書き出し、fsync 後に os.replace する。
        mtime は現在時刻になる。

        Raises:
            StorageError: 書き込み・リネームに失敗した場合。キャッシュは元のまま。
        """
        self.ensure_directory()
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{self.source.file_stem}.", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"cannot create temp file in {self.directory}: {e}") from e

        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as e:
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                logger.warning("一時ファイル削除失敗: %s", tmp)
            raise StorageError(f"cannot install feed to {self.path}: {e}") from e

        logger.info("キャッシュ更新: %s (%d bytes)", self.path, len(content))
