"""Page route table and the authentication guard over it.

The guard is a pure function of ``(path, is_authenticated)``; the Flask
side (``qradmin.pages``) only turns the decision into a response.

Usage:
    decision = resolve("/qr/42", is_authenticated=False)
    # RouteDecision(kind="redirect", target="/auth", ...)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

HOME_PATH = "/home"
LOGIN_PATH = "/auth"


@dataclass(frozen=True)
class PageRoute:
    pattern: str
    page: str
    protected: bool = True

    @property
    def segments(self) -> List[str]:
        return _split(self.pattern)


@dataclass(frozen=True)
class RouteDecision:
    kind: str  # "redirect" | "render" | "not_found"
    target: Optional[str] = None
    page: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)
    status: int = 200

    @property
    def is_redirect(self) -> bool:
        return self.kind == "redirect"


ROUTES: Tuple[PageRoute, ...] = (
    PageRoute("/", "root", protected=False),
    PageRoute("/auth", "auth", protected=False),
    PageRoute("/home", "home"),
    PageRoute("/create-user", "create_user"),
    PageRoute("/analytics", "analytics"),
    PageRoute("/create-campaign", "create_campaign"),
    PageRoute("/edit-campaign/:campaignId", "edit_campaign"),
    PageRoute("/qr", "qr_list"),
    PageRoute("/qr/:campaignId", "campaign_detail"),
    PageRoute("/profile", "profile"),
)

PROTECTED_PATTERNS = tuple(r.pattern for r in ROUTES if r.protected)


def _split(path: str) -> List[str]:
    return [part for part in (path or "").split("/") if part]


def _normalize(path: str) -> str:
    path = (path or "/").split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def match_route(path: str) -> Tuple[Optional[PageRoute], Dict[str, str]]:
    """Find the table entry for ``path`` and extract ``:param`` segments."""
    parts = _split(_normalize(path))
    for route in ROUTES:
        pattern = route.segments
        if len(pattern) != len(parts):
            continue
        params: Dict[str, str] = {}
        for expected, actual in zip(pattern, parts):
            if expected.startswith(":"):
                params[expected[1:]] = actual
            elif expected != actual:
                break
        else:
            return route, params
    return None, {}


def resolve(path: str, is_authenticated: bool) -> RouteDecision:
    """Decide what to do with a page request.

    - ``/``: home when signed in, login page otherwise (always a redirect);
    - ``/auth``: signed-in users go home, others get the login form;
    - any other known page: login redirect unless signed in;
    - unknown path: not-found page, independent of the session.
    """
    route, params = match_route(path)
    if route is None:
        return RouteDecision(kind="not_found", page="not_found", status=404)

    if route.pattern == "/":
        return RouteDecision(kind="redirect", target=HOME_PATH if is_authenticated else LOGIN_PATH, status=302)

    if route.pattern == LOGIN_PATH:
        if is_authenticated:
            return RouteDecision(kind="redirect", target=HOME_PATH, status=302)
        return RouteDecision(kind="render", page=route.page)

    if not is_authenticated:
        return RouteDecision(kind="redirect", target=LOGIN_PATH, status=302)
    return RouteDecision(kind="render", page=route.page, params=params)
