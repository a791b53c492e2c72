from functools import wraps
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from academics.models import Session
from .permissions import can_manage_session


def require_session_staff(param: str = "session_id"):
    """
    Decorator to guard views that act on a session's attendance.
    Expects a "session_id" in URL kwargs (default) or in GET/POST/JSON data.
    The resolved session is passed to the view as ``session``.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            data = getattr(request, "data", None) or {}
            sid = kwargs.pop(param, None) or request.GET.get(param) or data.get(param)
            if not sid:
                return JsonResponse({"error": "bad_request", "message": f"{param} is required"}, status=400)
            session = get_object_or_404(Session, pk=sid)
            if not can_manage_session(request.user, session):
                return JsonResponse({"error": "forbidden", "message": "Not authorized"}, status=403)
            kwargs["session"] = session
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator
