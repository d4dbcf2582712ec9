"""
Global slowapi rate limiter.

Used by documents/router.py to cap upload-grant issuance.  Mounted onto
app.state in main.py so slowapi middleware can find it.

Storage: Redis when REDIS_URL is set, otherwise in-memory (local dev, tests).
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)
