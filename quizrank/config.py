"""
Quiz Ranking Service Configuration
Database, auth and daily quiz settings
"""

import os

# MongoDB
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "quizrank_db")

# Auth
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ALLOW_USER_ID_HEADER = os.getenv("ALLOW_USER_ID_HEADER", "true").lower() == "true"

# Daily quiz
QUIZ_TIMEZONE = os.getenv("QUIZ_TIMEZONE", "UTC")
DAILY_TOPIC = os.getenv("DAILY_TOPIC", "daily")
RANK_BONUSES = tuple(
    int(b) for b in os.getenv("RANK_BONUSES", "5,3,1").split(",") if b.strip()
)
ENFORCE_LIVE_WINDOW = os.getenv("ENFORCE_LIVE_WINDOW", "false").lower() == "true"

# Leaderboards
DEFAULT_LEADERBOARD_SIZE = int(os.getenv("DEFAULT_LEADERBOARD_SIZE", "3"))
MAX_LEADERBOARD_SIZE = int(os.getenv("MAX_LEADERBOARD_SIZE", "100"))

# Rank recomputation re-reads the date's attempts after writing and repeats
# while new attempts keep appearing, at most this many times
RANK_RECOMPUTE_MAX_PASSES = 3

# Server
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if o.strip()
]
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
