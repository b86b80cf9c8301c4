"""Domain exceptions."""


class ChatNotAccessibleError(Exception):
    """チャットにアクセスできない場合に発生する例外

    ボットがグループから退出した場合や、
    キックされた場合、ユーザーにブロックされた場合などに発生する。
    """

    def __init__(self, chat_id: str, message: str = "") -> None:
        """初期化

        Args:
            chat_id: アクセスできないチャットのID
            message: エラーメッセージ（オプション）
        """
        self.chat_id = chat_id
        super().__init__(message or f"Chat {chat_id} is not accessible")
