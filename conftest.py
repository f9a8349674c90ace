"""Global pytest configuration.

Runs before any docrag import so the module-level app and cached settings
see the test environment.
"""

import os

# Tests never reach a real database or model provider
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.pop("OPENAI_API_KEY", None)
