# Utils package - Utility modules organized by domain
# Import from subpackages for convenience

from .parsing.json import repair_and_parse_json, extract_json_from_response
from .images.processor import normalize_screenshot, process_uploaded_image

__all__ = [
    "repair_and_parse_json",
    "extract_json_from_response",
    "normalize_screenshot",
    "process_uploaded_image",
]
