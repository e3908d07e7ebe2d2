"""Загрузка переменных из ``.env`` без сторонних зависимостей.

Формат: строки ``KEY=VALUE`` (допускается префикс ``export``,
кавычки вокруг значения и комментарии ``#``). Уже заданные в
окружении переменные не перезаписываются.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, Optional


def parse_env_lines(lines: Iterable[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.lower().startswith("export "):
            line = line[7:].strip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        elif " #" in value:
            value = value.split(" #", 1)[0].rstrip()
        values[key] = value
    return values


def load_dotenv_like(*candidates: str) -> Optional[str]:
    """Загрузить первый найденный .env в ``os.environ``.

    Порядок поиска: явно переданные пути, затем ``.env`` и
    ``.env.local`` в текущем каталоге и в корне проекта.
    Возвращает путь загруженного файла или None.
    """
    cwd = Path.cwd()
    proj_root = Path(__file__).resolve().parent
    paths = [Path(c) for c in candidates if c]
    paths.extend([cwd / ".env", proj_root / ".env", cwd / ".env.local", proj_root / ".env.local"])

    for path in paths:
        if not path.is_file():
            continue
        with path.open(encoding="utf-8") as fh:
            for key, value in parse_env_lines(fh).items():
                os.environ.setdefault(key, value)
        return str(path)
    return None
