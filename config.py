import os

# Site metadata
SITE_TITLE = "DevTrack"
SITE_DESCRIPTION = "My Internship Journey"
CATEGORIES = ["Frontend", "Backend", "DevOps", "Learning"]

# Auth / session
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
AUTH_SECRET_CODE = os.getenv("AUTH_SECRET_CODE", "")
BEARER_TOKEN = os.getenv("BEARER_TOKEN") or os.getenv("NEXT_PUBLIC_BEARER_TOKEN", "")
AUTH_COOKIE = "auth_token"
GUEST_TOKEN = "guest"
COOKIE_MAX_AGE = 60 * 60 * 24

# Data store
MONGODB_URI = os.getenv("MONGODB_URI", "")
MONGODB_DB = os.getenv("MONGODB_DB", "devtrack")
POSTS_COLLECTION = "posts"


def missing_settings():
    required = {
        "AUTH_SECRET_CODE": AUTH_SECRET_CODE,
        "BEARER_TOKEN": BEARER_TOKEN,
        "MONGODB_URI": MONGODB_URI,
    }
    return [name for name, value in required.items() if not value]


def check_settings():
    missing = missing_settings()
    if missing:
        raise RuntimeError(f"{', '.join(missing)} is not defined")
