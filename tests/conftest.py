import os

# Keep test runs away from the development database file
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_freelance_ledger.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")
