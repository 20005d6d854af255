from typing import Any, Iterable, Optional
from markupsafe import escape


def sanitize(value: Any) -> Optional[str]:
    '''Escape HTML in user supplied text so it is stored inert.'''
    if value is None:
        return None
    return str(escape(str(value).strip()))


def sanitize_fields(payload: dict, names: Iterable[str]) -> dict:
    return {name: sanitize(payload.get(name)) for name in names}
