"""User-facing strings for authentication and throttling responses."""

from typing import Literal

type Locale = Literal["en", "tr"]

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "login_required": "You need to sign in",
        "admin_required": "Admin privileges are required for this action",
        "invalid_credentials": "Email or password is incorrect",
        "csrf_invalid": "Invalid CSRF token. Please refresh the page.",
        "rate_limited": "Too many requests. Please wait and try again.",
        "cron_unauthorized": "Unauthorized",
        "cron_disabled": "Scheduled cleanup is not configured",
        "setup_done": "An admin account already exists",
    },
    "tr": {
        "login_required": "Oturum açmanız gerekiyor",
        "admin_required": "Bu işlem için admin yetkisi gerekiyor",
        "invalid_credentials": "E-posta veya şifre hatalı",
        "csrf_invalid": "Geçersiz CSRF token. Lütfen sayfayı yenileyin.",
        "rate_limited": "Çok fazla istek gönderdiniz. Lütfen bekleyin.",
        "cron_unauthorized": "Yetkisiz",
        "cron_disabled": "Zamanlanmış temizlik yapılandırılmamış",
        "setup_done": "Admin hesabı zaten mevcut",
    },
}


def message(key: str, locale: Locale = "en") -> str:
    return MESSAGES[locale][key]
