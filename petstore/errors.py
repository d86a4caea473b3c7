from typing import Optional


# Message catalog: code -> (status code, localized messages)
MESSAGES: dict[str, dict] = {
    "00001I": {"status_code": 200, "message": {"en": "Already liked.", "ja": "すでにお気に入り登録済みです。"}},
    "00002I": {"status_code": 200, "message": {"en": "Not liked yet.", "ja": "お気に入り登録されていません。"}},
    "00001E": {"status_code": 400, "message": {"en": "header parameter is invalid.", "ja": "ヘッダーチェック処理にてエラーが発生しました。"}},
    "00002E": {"status_code": 400, "message": {"en": "ClientID parameter is invalid.", "ja": "クライアントIDチェック処理にてエラーが発生しました。"}},
    "00003E": {"status_code": 404, "message": {"en": "pet not found.", "ja": "ペットが見つかりません。"}},
    "00004E": {"status_code": 400, "message": {"en": "request body is invalid.", "ja": "リクエストの内容が不正です。"}},
    "10001E": {"status_code": 500, "message": {"en": "DB select error.", "ja": "DBへのデータ取得時にエラーが発生しました。"}},
    "10002E": {"status_code": 500, "message": {"en": "object mapping error.", "ja": "オブジェクトの変換に失敗しました。"}},
    "10003E": {"status_code": 500, "message": {"en": "DB update error.", "ja": "DBへのデータ保存時にエラーが発生しました。"}},
    "10004E": {"status_code": 500, "message": {"en": "favorite create error.", "ja": "お気に入りの登録に失敗しました。"}},
    "10005E": {"status_code": 500, "message": {"en": "favorite delete error.", "ja": "お気に入りの削除に失敗しました。"}},
    "10006E": {"status_code": 409, "message": {"en": "data conflicts with an existing record.", "ja": "既存のデータと競合しています。"}},
}

_FALLBACK = {"status_code": 500, "message": {"en": "internal error"}}


class BusinessError(Exception):
    """Base error carrying a catalog code.

    5xx errors are private: their detail is logged, never returned.
    """

    default_code = "10001E"

    def __init__(
        self,
        code: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        detail: Optional[str] = None,
    ):
        self.code = code or self.default_code
        self.definition = MESSAGES.get(self.code, _FALLBACK)
        self.original_error = original_error
        self.detail = detail
        super().__init__(self.message("en"))

    @property
    def status_code(self) -> int:
        return self.definition["status_code"]

    @property
    def is_public(self) -> bool:
        return self.status_code < 500

    def message(self, locale: str = "en") -> str:
        messages = self.definition["message"]
        return messages.get(locale, messages["en"])

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message('en')}"
        if self.detail:
            text += f" {self.detail}"
        if self.original_error is not None:
            text += f" ({self.original_error})"
        return text


class QueryError(BusinessError):
    """Malformed SQL, missing bound parameter, timeout or backend rejection."""

    default_code = "10001E"


class ConstraintError(BusinessError):
    """Uniqueness or foreign-key violation."""

    default_code = "10006E"


class DuplicateActionError(BusinessError):
    """The like is already in the requested state. Informational, not a failure."""

    default_code = "00001I"


class NotFoundError(BusinessError):
    default_code = "00003E"


class RequestError(BusinessError):
    default_code = "00004E"


class LikeToggleError(BusinessError):
    """A write step of the like toggle failed."""

    default_code = "10003E"

    def __init__(
        self,
        step: str,
        code: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        rolled_back: bool = False,
    ):
        self.step = step
        self.rolled_back = rolled_back
        super().__init__(code, original_error, detail=f"step={step}")


class PartialSagaFailure(LikeToggleError):
    """Relation sync failed after the counter write committed.

    Nothing is compensated; `pet_id`, `user_id` and `likes` identify the
    row an operator has to reconcile.
    """

    def __init__(
        self,
        step: str,
        code: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        pet_id: Optional[str] = None,
        user_id: Optional[str] = None,
        likes: Optional[int] = None,
    ):
        self.pet_id = pet_id
        self.user_id = user_id
        self.likes = likes
        super().__init__(step, code, original_error, rolled_back=False)
