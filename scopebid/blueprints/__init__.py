"""
Renovation Scope Bidding Service
Blueprint registry.
"""

from flask import request


def form_or_json():
    """Return the request payload as a flat mapping (form fields or JSON object)."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form


def selected_ids(key="selected"):
    """Return the repeated ``selected`` values as ints, dropping anything non-numeric."""
    if request.is_json:
        data = request.get_json(silent=True) or {}
        raw = data.get(key, []) if isinstance(data, dict) else []
        if not isinstance(raw, list):
            raw = [raw]
    else:
        raw = request.form.getlist(key)

    ids = []
    for value in raw:
        try:
            item_id = int(str(value).strip())
        except (TypeError, ValueError):
            continue
        if item_id > 0:
            ids.append(item_id)
    return ids
