"""
Per-client request budgets (fixed window), keyed on the remote address.

Limits are tuned per endpoint class; RATELIMIT_ENABLED=False turns them off.
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, default_limits=[])

# Public reads (post/answer listings)
PUBLIC_READ = "100 per minute"
# Auth and user management
STANDARD = "60 per minute"
# Content writes
WRITE = "30 per minute"
