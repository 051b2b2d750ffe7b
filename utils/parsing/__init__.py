# Parsing subpackage - JSON extraction and repair
from .json import extract_json_from_response, repair_and_parse_json

__all__ = [
    "extract_json_from_response",
    "repair_and_parse_json",
]
