import os

# Generation limits
MIN_INPUT_CHARS = int(os.getenv("QUIZ_MIN_INPUT_CHARS", "100"))
MAX_QUESTIONS = int(os.getenv("QUIZ_MAX_QUESTIONS", "10"))
KEY_SENTENCE_LIMIT = int(os.getenv("QUIZ_KEY_SENTENCES", "10"))
KEY_TERM_LIMIT = int(os.getenv("QUIZ_KEY_TERMS", "15"))

# Uploads
EXTRACTION_TIMEOUT_SECONDS = float(os.getenv("EXTRACTION_TIMEOUT_SECONDS", "10"))
EXTRACTION_WORKERS = int(os.getenv("EXTRACTION_WORKERS", "2"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

# Service
GENERATION_RATE_LIMIT = os.getenv("GENERATION_RATE_LIMIT", "30/minute")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
