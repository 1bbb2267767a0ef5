"""Shape validation for extraction payloads returned by the model."""

from typing import Any, Dict, List, Optional

from ..utils.errors import ExtractionFailure


class PayloadReader:
    """
    Typed accessors over a raw extraction payload.

    Required fields that are missing or malformed raise ExtractionFailure
    instead of letting a null flow into the rule arithmetic. Optional
    numeric fields may be absent or null and come back as None.
    """

    def __init__(self, payload: Any, document_kind: str):
        if not isinstance(payload, dict):
            raise ExtractionFailure.malformed(document_kind, "response is not a JSON object")
        self.payload: Dict[str, Any] = payload
        self.document_kind = document_kind

    def _fail(self, problem: str) -> ExtractionFailure:
        return ExtractionFailure.malformed(self.document_kind, problem)

    def require(self, key: str) -> Any:
        value = self.payload.get(key)
        if value is None:
            raise self._fail(f"missing required field '{key}'")
        return value

    def require_str(self, key: str) -> str:
        value = self.require(key)
        if isinstance(value, (dict, list)):
            raise self._fail(f"field '{key}' must be a string")
        return str(value).strip()

    def optional_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.payload.get(key)
        if value is None:
            return default
        if isinstance(value, (dict, list)):
            raise self._fail(f"field '{key}' must be a string")
        return str(value).strip()

    def require_float(self, key: str) -> float:
        value = self.optional_float(key)
        if value is None:
            raise self._fail(f"missing required field '{key}'")
        return value

    def optional_float(self, key: str, payload: Optional[Dict[str, Any]] = None) -> Optional[float]:
        source = self.payload if payload is None else payload
        return coerce_float(source.get(key), key, self)

    def require_bool(self, key: str) -> bool:
        value = self.require(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise self._fail(f"field '{key}' must be a boolean")

    def optional_bool(self, key: str, default: bool = False) -> bool:
        if self.payload.get(key) is None:
            return default
        return self.require_bool(key)

    def require_list(self, key: str) -> List[Any]:
        value = self.require(key)
        if not isinstance(value, list):
            raise self._fail(f"field '{key}' must be a list")
        return value

    def optional_list(self, key: str) -> List[Any]:
        if self.payload.get(key) is None:
            return []
        return self.require_list(key)

    def str_list(self, key: str, required: bool = False) -> List[str]:
        values = self.require_list(key) if required else self.optional_list(key)
        return ["" if value is None else str(value).strip() for value in values]

    def float_list(self, key: str, required: bool = False) -> List[float]:
        values = self.require_list(key) if required else self.optional_list(key)
        result = []
        for index, value in enumerate(values):
            number = coerce_float(value, f"{key}[{index}]", self)
            if number is None:
                raise self._fail(f"field '{key}[{index}]' must be a number")
            result.append(number)
        return result


def coerce_float(value: Any, key: str, reader: PayloadReader) -> Optional[float]:
    """
    Convert a JSON value to float, accepting numeric strings like "1,250.00" or "$40".

    Returns None for null or empty values; raises ExtractionFailure for anything
    that is present but not numeric.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise reader._fail(f"field '{key}' must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.replace(",", "").replace("$", "").strip()
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            pass
    raise reader._fail(f"field '{key}' must be a number")
