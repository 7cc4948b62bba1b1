"""Global pytest configuration."""

import os

# Settings are cached on first use; point them at throwaway backends before any imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.pop("REDIS_URL", None)
os.environ.pop("OPENAI_API_KEY", None)
