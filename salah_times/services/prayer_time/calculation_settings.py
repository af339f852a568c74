from typing import Any, Dict, List, Optional
from flask import current_app

from ..helpers.constants import CALCULATION_METHODS, SCHOOLS
from ...exceptions import InvalidCalculationSettings
from .entities import CalculationSettings


def list_calculation_methods() -> List[Dict[str, Any]]:
    return [{"id": method_id, "name": name} for method_id, name in CALCULATION_METHODS.items()]


def list_schools() -> List[Dict[str, Any]]:
    return [{"id": school_id, "name": name} for school_id, name in SCHOOLS.items()]


def validate_settings(method_id: Optional[int] = None, school_id: Optional[int] = None) -> CalculationSettings:
    """
    Builds CalculationSettings from user input, falling back to the configured
    defaults for values that were not supplied.

    Raises:
        InvalidCalculationSettings: if either id is not one of the known values.
    """
    if method_id is None:
        method_id = current_app.config.get('DEFAULT_CALCULATION_METHOD_ID', 2)
    if school_id is None:
        school_id = current_app.config.get('DEFAULT_SCHOOL_ID', 0)

    if method_id not in CALCULATION_METHODS:
        raise InvalidCalculationSettings(f"Unknown calculation method: {method_id}")
    if school_id not in SCHOOLS:
        raise InvalidCalculationSettings(f"Unknown juristic school: {school_id}")

    return CalculationSettings(method_id=int(method_id), school_id=int(school_id))
