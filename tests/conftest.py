from __future__ import annotations

import os

# Settings are built at import time; keep tests off real services.
os.environ.setdefault("DATABASE_BACKEND", "memory")
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
