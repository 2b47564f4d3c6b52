from slowapi import Limiter
from slowapi.util import get_remote_address

# Dataset builds read every relation edge, so they are rate limited per client
limiter = Limiter(key_func=get_remote_address)
