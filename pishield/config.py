import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-key-change-in-production')
    DATABASE_PATH = os.environ.get('PISHIELD_DB_PATH', 'pishield.db')

    # AI backends
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')
    OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o-mini')
    GOOGLE_GEMINI_API_KEY = os.environ.get('GOOGLE_GEMINI_API_KEY')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-1.5-flash')
    GEMINI_MODEL_LABEL = os.environ.get('GEMINI_MODEL_LABEL', 'Google Gemini 1.5 Flash')
    GOOGLE_CLOUD_VISION_API_KEY = os.environ.get('GOOGLE_CLOUD_VISION_API_KEY')
    REQUEST_TIMEOUT = 30

    # Identity provider
    FIREBASE_PROJECT_ID = os.environ.get('FIREBASE_PROJECT_ID')

    # Rate limiting (per client, per fixed one-minute window)
    TEXT_ANALYSIS_RATE_LIMIT = '10 per minute'
    MEDIA_RATE_LIMIT = '5 per minute'
    VIDEO_ANALYSIS_RATE_LIMIT = '3 per minute'
    RATE_LIMIT_WINDOW_SECONDS = 60
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_STRATEGY = 'fixed-window'
    RATELIMIT_HEADERS_ENABLED = False

    # Uploads
    MAX_VIDEO_BYTES = 100 * 1024 * 1024  # 100MB
    MAX_CONTENT_LENGTH = 110 * 1024 * 1024  # video limit plus multipart overhead

    # Logging
    LOG_FILE = os.environ.get('PISHIELD_LOG_FILE', 'pishield.log')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
