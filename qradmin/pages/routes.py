"""Маршруты страниц админки.

Каждая строка :data:`qradmin.routing.ROUTES` регистрируется как
отдельное правило Flask (``:campaignId`` → ``<campaignId>``), а сама
обработка сводится к вызову :func:`qradmin.routing.resolve`.
"""

from flask import Response, redirect, render_template, request

from ..helpers import get_current_user
from ..routing import ROUTES, resolve

from . import bp


def _flask_rule(pattern: str) -> str:
    return "/".join(f"<{part[1:]}>" if part.startswith(":") else part for part in pattern.split("/")) or "/"


def render_page() -> Response:
    user = get_current_user()
    decision = resolve(request.path, user is not None)
    if decision.is_redirect:
        return redirect(decision.target, code=decision.status)
    if decision.kind == "not_found":
        return render_template("not_found.html"), 404
    return render_template(
        f"pages/{decision.page}.html",
        current_user=user,
        params=decision.params,
        **decision.params,
    )


for _route in ROUTES:
    bp.add_url_rule(
        _flask_rule(_route.pattern),
        endpoint=_route.page,
        view_func=lambda **_kwargs: render_page(),
        strict_slashes=False,
        methods=["GET"],
    )
