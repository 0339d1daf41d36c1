from __future__ import annotations
from typing import Any, Dict
from fluvial.errors import ValidationError


def apply_filters(query, specs: Dict[str, Dict[str, Any]], params: Dict[str, Any]):
    """Generic conjunctive filter builder.

    specs: { param_name: { 'op': callable(query, value)->query, 'coerce': type/func, 'validate': callable(optional) } }
    Omitted (None) params leave the query unconstrained.
    """
    for name, meta in specs.items():
        if name not in params or params[name] is None:
            continue
        val = params[name]
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except Exception:
                raise ValidationError(f'{name} invalid')
        if 'validate' in meta and not meta['validate'](val):
            raise ValidationError(f'{name} invalid')
        query = meta['op'](query, val)
    return query
