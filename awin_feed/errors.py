"""フィード取得・解析のエラー定義."""


class FetchError(Exception):
    """フィードの取得・展開・保存に失敗した."""


class TransportError(FetchError):
    """ネットワーク層の失敗 (DNS, TLS, タイムアウト, 接続断など)."""


class RemoteError(TransportError):
    """AWIN が 2xx 以外のステータスを返した."""

    def __init__(self, status_code: int, reason: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"AWIN API error: HTTP {status_code} {reason}".rstrip())


class ExtractError(FetchError):
    """アーカイブが壊れている、またはエントリ数が 1 件でない."""


class StorageError(FetchError):
    """キャッシュディレクトリへの書き込み・リネーム・削除に失敗した."""


class ParseError(ValueError):
    """CSV の 1 行が解析できない. 行単位で読み飛ばし、上位には伝播しない."""
