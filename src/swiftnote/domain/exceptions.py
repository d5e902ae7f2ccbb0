"""Domain exceptions."""


class NoteError(Exception):
    """ノート操作に関する例外の基底クラス"""


class ValidationError(NoteError):
    """呼び出し側が渡した値が不変条件に違反している場合に発生する例外

    空のタイトル、空または不正な ID などが該当する。
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """初期化

        Args:
            message: エラーメッセージ
            field: 違反したフィールド名（オプション）
        """
        self.field = field
        super().__init__(message)


class NotFoundError(NoteError):
    """操作対象のノートが要求された状態で存在しない場合に発生する例外

    get / update / soft_delete ではアクティブなノート、
    restore では論理削除済みのノートが対象となる。
    """

    def __init__(self, note_id: str, message: str = "") -> None:
        """初期化

        Args:
            note_id: 見つからなかったノートの ID
            message: エラーメッセージ（オプション）
        """
        self.note_id = note_id
        super().__init__(message or f"Note {note_id} not found")


class StoreError(NoteError):
    """永続化サービスに到達できない、または想定外の失敗を返した場合に発生する例外"""


class PersistenceError(Exception):
    """永続化サービス側で発生する例外の基底クラス

    NoteStore の実装はサービスの失敗をこの例外（またはサブクラス）で報告する。
    該当レコードなしは例外ではなく空の結果で表す。
    """
