# config/settings.py

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# 项目根目录
BASE_DIR = Path(__file__).resolve().parent.parent


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


# === Enrichment backend ===
# "mock" uses the simulated backend, "openai" talks to the OpenAI API
ENRICHMENT_BACKEND = os.getenv("ENRICHMENT_BACKEND", "mock").strip().lower()

# Upper bound for a single enrichment call; 0 disables the timeout
ENRICHMENT_TIMEOUT_SECONDS = _env_float("ENRICHMENT_TIMEOUT_SECONDS", 30.0)

# Number of images requested for an AI gallery
GALLERY_SIZE = 4

# Simulated backend latency
MOCK_DESCRIPTION_DELAY_SECONDS = _env_float("MOCK_DESCRIPTION_DELAY_SECONDS", 1.5)
MOCK_GALLERY_DELAY_SECONDS = _env_float("MOCK_GALLERY_DELAY_SECONDS", 2.0)

# OpenAI models
OPENAI_DESCRIPTION_MODEL = os.getenv("OPENAI_DESCRIPTION_MODEL", "gpt-4o-mini")
OPENAI_IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-2")
OPENAI_IMAGE_SIZE = os.getenv("OPENAI_IMAGE_SIZE", "512x512")
OPENAI_KEY_FILE = BASE_DIR / "config" / "credentials" / "openai_key.txt"

# === Assets ===
# Uploaded files above this size are rejected (10 MiB)
MAX_ASSET_BYTES = _env_int("MAX_ASSET_BYTES", 10 * 1024 * 1024)

# === Catalog defaults ===
CATEGORIES = ["Electronics", "Fashion", "Home & Living", "Beauty"]
DEFAULT_CATEGORY = CATEGORIES[0]
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")

# === Google Drive 相关配置 ===
# OAuth 客户端 JSON 放在 config/credentials 目录
GOOGLE_CREDENTIALS_FILE = BASE_DIR / "config" / "credentials" / "google_credentials.json"
GOOGLE_TOKEN_FILE = BASE_DIR / "config" / "credentials" / "google_token.json"

# 只读权限就够用
GOOGLE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]

# === Output ===
# 用来存放导出文件的目录
EXPORT_DIR = Path(os.getenv("EXPORT_DIR", str(BASE_DIR / "data" / "exports")))
EXPORT_DIR.mkdir(exist_ok=True, parents=True)

LOG_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))
LOG_DIR.mkdir(exist_ok=True, parents=True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
