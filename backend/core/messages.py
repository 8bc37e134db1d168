# backend/core/messages.py

"""User-facing error messages, keyed by error code and locale."""

from typing import Optional

from .config import get_settings

SUPPORTED_LOCALES = ("en", "tr")

MESSAGES = {
    "en": {
        "VALIDATION_ERROR": "The submitted data is invalid.",
        "NOT_FOUND": "The requested record was not found.",
        "CONFLICT": "The request conflicts with existing data.",
        "AUTH_FAILED": "Authentication is required.",
        "PERMISSION_DENIED": "You are not allowed to perform this action.",
        "INTERNAL_ERROR": "An unexpected error occurred. Please try again later.",
    },
    "tr": {
        "VALIDATION_ERROR": "Gönderilen veriler geçersiz.",
        "NOT_FOUND": "İstenen kayıt bulunamadı.",
        "CONFLICT": "İstek mevcut verilerle çakışıyor.",
        "AUTH_FAILED": "Kimlik doğrulaması gerekli.",
        "PERMISSION_DENIED": "Bu işlem için yetkiniz yok.",
        "INTERNAL_ERROR": "Beklenmeyen bir hata oluştu. Lütfen daha sonra tekrar deneyin.",
    },
}


def resolve_locale(accept_language: Optional[str]) -> str:
    """Pick the first supported language from an Accept-Language header."""
    if accept_language:
        for part in accept_language.split(","):
            code = part.split(";")[0].strip().lower()[:2]
            if code in SUPPORTED_LOCALES:
                return code
    default = get_settings().default_locale
    return default if default in SUPPORTED_LOCALES else "en"


def translate(error_code: str, locale: str) -> str:
    catalogue = MESSAGES.get(locale, MESSAGES["en"])
    return catalogue.get(error_code, catalogue["INTERNAL_ERROR"])
