from slowapi import Limiter
from slowapi.util import get_remote_address


def get_rate_limit_key(request):
    """Per coach session when the path names one; else per IP. Multi-instance needs Redis later."""
    session_id = request.path_params.get("session_id") if request.path_params else None
    if session_id:
        return f"session:{session_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=get_rate_limit_key)
