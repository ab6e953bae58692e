"""
Locale negotiation and UI strings for the download page.
"""

from typing import Dict, Optional

from chatdist.constants import DEFAULT_LOCALE, SUPPORTED_LOCALES

LOCALE_NAMES: Dict[str, str] = {
    "zh-CN": "简体中文",
    "zh-TW": "繁體中文",
    "ja": "日本語",
    "ko": "한국어",
    "en": "English",
    "ru": "Русский",
}

_SHARED = {
    "appName": "RWKV Chat",
    "macos": "macOS",
    "linux": "Linux",
    "ios": "iOS",
    "android": "Android",
    "huggingface": "HuggingFace",
    "hfMirror": "HF-Mirror",
    "aifasthub": "Aifasthub",
    "github": "GitHub Release",
    "pgyer": "Pgyer",
    "appStore": "App Store",
    "playStore": "Play Store",
    "testFlight": "TestFlight",
}

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "zh-CN": {
        **_SHARED,
        "appTagline": "让大模型触手可及",
        "appDescription": "便携式、全平台的 RWKV 模型推理终端，基于 Flutter 与 C++ 高性能推理引擎",
        "downloadNow": "⬇️ 立即下载",
        "viewChangelog": "📋 查看更新日志",
        "backToDownload": "← 返回下载页面",
        "changelog": "更新日志",
        "changelogDescription": "查看应用的版本更新记录",
        "available": "可用",
        "notAvailable": "暂不可用",
        "noReleaseNotes": "暂无更新日志",
        "windowsInstaller": "Windows 安装包",
        "windowsZip": "Windows 压缩包",
        "pgyerApk": "蒲公英 APK",
        "pgyer": "蒲公英",
    },
    "zh-TW": {
        **_SHARED,
        "appTagline": "讓大模型觸手可及",
        "appDescription": "便攜式、全平台的 RWKV 模型推理終端，基於 Flutter 與 C++ 高性能推理引擎",
        "downloadNow": "⬇️ 立即下載",
        "viewChangelog": "📋 查看更新日誌",
        "backToDownload": "← 返回下載頁面",
        "changelog": "更新日誌",
        "changelogDescription": "查看應用的版本更新記錄",
        "available": "可用",
        "notAvailable": "暫不可用",
        "noReleaseNotes": "暫無更新日誌",
        "windowsInstaller": "Windows 安裝檔",
        "windowsZip": "Windows 壓縮檔",
        "pgyerApk": "Pgyer APK",
    },
    "ja": {
        **_SHARED,
        "appTagline": "AIをもっと身近に",
        "appDescription": "Flutter と C++ 高性能推論エンジンを融合したポータブルなRWKVモデル推論端末",
        "downloadNow": "⬇️ 今すぐダウンロード",
        "viewChangelog": "📋 更新履歴を見る",
        "backToDownload": "← ダウンロードページに戻る",
        "changelog": "更新履歴",
        "changelogDescription": "アプリのバージョン更新履歴",
        "available": "利用可能",
        "notAvailable": "利用できません",
        "noReleaseNotes": "更新履歴はまだありません",
        "windowsInstaller": "Windows インストーラー",
        "windowsZip": "Windows Zip",
        "pgyerApk": "Pgyer APK",
    },
    "ko": {
        **_SHARED,
        "appTagline": "AI를 더 가까이",
        "appDescription": "Flutter와 C++ 고성능 추론 엔진을 결합한 휴대용 RWKV 모델 추론 터미널",
        "downloadNow": "⬇️ 지금 다운로드",
        "viewChangelog": "📋 업데이트 내역 보기",
        "backToDownload": "← 다운로드 페이지로 돌아가기",
        "changelog": "업데이트 내역",
        "changelogDescription": "앱 버전 업데이트 기록",
        "available": "사용 가능",
        "notAvailable": "사용 불가",
        "noReleaseNotes": "아직 업데이트 내역이 없습니다",
        "windowsInstaller": "Windows 설치 파일",
        "windowsZip": "Windows Zip",
        "pgyerApk": "Pgyer APK",
    },
    "en": {
        **_SHARED,
        "appTagline": "AI at Your Fingertips",
        "appDescription": (
            "Portable, cross-platform RWKV model inference terminal powered by "
            "Flutter and C++ high-performance engine"
        ),
        "downloadNow": "⬇️ Download Now",
        "viewChangelog": "📋 View Changelog",
        "backToDownload": "← Back to Download",
        "changelog": "Changelog",
        "changelogDescription": "View app version update history",
        "available": "Available",
        "notAvailable": "Not available",
        "noReleaseNotes": "No release notes yet",
        "windowsInstaller": "Windows Installer",
        "windowsZip": "Windows Zip",
        "pgyerApk": "Pgyer APK",
    },
    "ru": {
        **_SHARED,
        "appTagline": "ИИ под рукой",
        "appDescription": (
            "Портативный кроссплатформенный терминал для вывода моделей RWKV "
            "на базе Flutter и C++"
        ),
        "downloadNow": "⬇️ Скачать сейчас",
        "viewChangelog": "📋 История изменений",
        "backToDownload": "← Вернуться к загрузке",
        "changelog": "История изменений",
        "changelogDescription": "История обновлений версий приложения",
        "available": "Доступно",
        "notAvailable": "Недоступно",
        "noReleaseNotes": "Пока нет истории изменений",
        "windowsInstaller": "Установщик Windows",
        "windowsZip": "Windows Zip",
        "pgyerApk": "Pgyer APK",
    },
}


def _match_tag(tag: str) -> Optional[str]:
    tag = tag.strip()
    if not tag:
        return None

    for locale in SUPPORTED_LOCALES:
        if locale.lower() == tag.lower():
            return locale

    prefix = tag.split("-")[0].lower()
    if prefix == "zh":
        upper = tag.upper()
        if "TW" in upper or "HK" in upper or "HANT" in upper:
            return "zh-TW"
        return "zh-CN"

    for locale in SUPPORTED_LOCALES:
        if locale.lower().startswith(prefix):
            return locale
    return None


def negotiate_locale(
    query_lang: Optional[str] = None,
    accept_language: Optional[str] = None,
    default: str = DEFAULT_LOCALE,
) -> str:
    """
    Choose the page locale.

    An explicit ?lang= value wins; otherwise the Accept-Language tags are tried
    in header order. Exact matches win, zh-* maps to zh-TW for TW/HK/Hant and
    to zh-CN otherwise, and other tags match by language prefix.
    """
    if query_lang:
        matched = _match_tag(query_lang)
        if matched:
            return matched

    if accept_language:
        for part in accept_language.split(","):
            tag = part.split(";")[0]
            if tag.strip() == "*":
                continue
            matched = _match_tag(tag)
            if matched:
                return matched

    return default if default in TRANSLATIONS else DEFAULT_LOCALE


def get_translations(locale: str) -> Dict[str, str]:
    return TRANSLATIONS.get(locale, TRANSLATIONS[DEFAULT_LOCALE])
