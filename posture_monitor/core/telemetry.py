"""
Debug readout formatting
========================

Turns classification diagnostics into compact, JSON-friendly dicts for the
presentation layer's debug panel.
"""
import json
from typing import Any, Dict

import numpy as np


def format_floats(obj: Any, ndigits: int = 3) -> Any:
    """
    Recursively round floats in an object

    Args:
        obj: dict, list, tuple, float, ndarray or numpy scalar
        ndigits: decimal places

    Returns:
        The same structure with floats rounded
    """
    if isinstance(obj, dict):
        return {k: format_floats(v, ndigits) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [format_floats(item, ndigits) for item in obj]
    elif isinstance(obj, float):
        return round(obj, ndigits)
    elif isinstance(obj, np.ndarray):
        return [round(float(x), ndigits) for x in obj.tolist()]
    elif isinstance(obj, np.generic):
        val = obj.item()
        return round(val, ndigits) if isinstance(val, float) else val
    else:
        return obj


def format_readout(readout: Dict[str, Any], indent: int = 2) -> str:
    """Render a readout dict as JSON text (floats rounded)"""
    return json.dumps(format_floats(readout), ensure_ascii=False, indent=indent)
