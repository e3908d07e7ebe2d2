"""Blueprint HTML-страниц админки.

Таблица страниц и правило доступа описаны в :mod:`qradmin.routing`;
здесь решение guard'а превращается в редирект или отрисовку шаблона.
"""

from flask import Blueprint

bp = Blueprint("pages", __name__)

from . import routes  # noqa: E402,F401
