"""Exceptions and user-facing failure messages for the generators."""

from __future__ import annotations

from typing import Optional

MSG_NOT_CONFIGURED = "AIの設定が未完了です。管理者にお問い合わせください。"
MSG_GENERIC_FAILURE = "AI生成に失敗しました。入力内容を見直して再度お試しください。"
MSG_MISSING_BLUEPRINT = "Blueprintが未生成です。先にLP生成を実行してください。"
MSG_BAD_REQUEST = "入力が不正です。"

MSG_QUOTA = "OpenAIのクレジット/課金が不足しています。"
MSG_RATE_LIMIT = "アクセスが混雑しています。時間をおいて再試行してください。"
MSG_UNAUTHORIZED = "APIキーが無効です。管理者にお問い合わせください。"
MSG_FORBIDDEN = "APIキーの権限が不足しています。"


class LpGeneratorError(Exception):
    """Base class for lp-generator errors."""


class TransportError(LpGeneratorError):
    """The chat completion call failed (HTTP error, timeout, empty content)."""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class GenerationCancelled(LpGeneratorError):
    """Raised when the caller cancels a generation between or during attempts."""


def classify_user_message(error_text: str) -> Optional[str]:
    """Map accumulated error text to a specific user message, if recognisable."""
    if not error_text or not error_text.strip():
        return None

    lower = error_text.lower()
    if "insufficient_quota" in lower or ("429" in lower and "quota" in lower):
        return MSG_QUOTA
    if "rate_limit" in lower or "too many requests" in lower:
        return MSG_RATE_LIMIT
    if "401" in lower or "unauthorized" in lower:
        return MSG_UNAUTHORIZED
    if "403" in lower or "forbidden" in lower:
        return MSG_FORBIDDEN
    return None
