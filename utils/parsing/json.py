import json
import logging
import re
import json5
import demjson3

from errors import InvalidAIResponseError

logger = logging.getLogger(__name__)


def _outer_object(text: str) -> str:
    """Substring from the first '{' to the last '}', or '' if there is none."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return ""
    return text[start : end + 1]


def _first_decoded_object(text: str):
    """First JSON object that decodes starting at any '{' in the text, or None."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            result, _ = decoder.raw_decode(text, start)
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)
    return None


def _parse_whole_or_outer(response_text: str):
    """Parse the text as-is, then its outermost {...} substring. None if neither is an object."""
    try:
        result = json.loads(response_text)
        if isinstance(result, dict):
            return result
    except (json.JSONDecodeError, TypeError):
        pass

    candidate = _outer_object(response_text or "")
    if candidate:
        try:
            result = json.loads(candidate)
            if isinstance(result, dict):
                return result
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️  Embedded JSON object did not parse: {str(e)}")
    return None


def extract_json_from_response(response_text: str) -> dict:
    """
    Parse a model response that should be a JSON object.

    Tries the text as-is, then the outermost {...} substring (models often
    wrap JSON in prose or markdown fences), then the first object that
    decodes from any '{' so stray braces in a prose prefix are skipped.

    Raises:
        InvalidAIResponseError: if no attempt yields a JSON object
    """
    result = _parse_whole_or_outer(response_text)
    if result is None:
        result = _first_decoded_object(response_text or "")
    if result is None:
        raise InvalidAIResponseError()
    return result


# JSON Repair and Parsing Function
def repair_and_parse_json(response_text: str) -> dict:
    """
    Multi-layered JSON parsing with auto-repair capabilities.

    Attempts to parse JSON through multiple strategies:
    1. Direct parse, then the outer {...} substring
    2. Clean common issues (trailing commas, comments, fences)
    3. json5 parser (tolerates comments and trailing commas)
    4. demjson3 parser (auto-repairs many errors)
    5. First object that decodes from any '{' (stray braces in a prose prefix)

    Args:
        response_text: Raw text response from the model

    Returns:
        Parsed dictionary

    Raises:
        InvalidAIResponseError: If all parsing attempts fail
    """
    errors = []

    # Layer 1: strict parse
    result = _parse_whole_or_outer(response_text)
    if result is not None:
        return result
    errors.append("Standard JSON: not an object")
    logger.debug("🔧 Layer 1 failed, cleaning response...")

    candidate = _outer_object(response_text or "") or (response_text or "")

    # Layer 2: Clean common LLM JSON mistakes
    try:
        cleaned = re.sub(r"^```(?:json)?\s*|\s*```$", "", candidate.strip())
        # Remove trailing commas before closing braces/brackets
        cleaned = re.sub(r",(\s*[}\]])", r"\1", cleaned)
        # Remove single-line comments (// ...) that start a line or follow a value
        cleaned = re.sub(r"(^|[\s,{\[])//[^\n]*", r"\1", cleaned)
        # Remove multi-line comments (/* ... */)
        cleaned = re.sub(r"/\*.*?\*/", "", cleaned, flags=re.DOTALL)

        result = json.loads(cleaned)
        if isinstance(result, dict):
            logger.debug("✅ Layer 2: Cleaned JSON parsing succeeded")
            return result
        errors.append("Cleaned JSON: not an object")
    except json.JSONDecodeError as e:
        errors.append(f"Cleaned JSON: {str(e)}")

    # Layer 3: Try json5 (tolerates trailing commas and comments)
    try:
        result = json5.loads(candidate)
        if isinstance(result, dict):
            logger.debug("✅ Layer 3: JSON5 parsing succeeded")
            return result
        errors.append("JSON5: not an object")
    except Exception as e:
        errors.append(f"JSON5: {str(e)}")

    # Layer 4: Try demjson3 (auto-repairs many JSON errors)
    try:
        result = demjson3.decode(candidate)
        if isinstance(result, dict):
            logger.debug("✅ Layer 4: DemJSON parsing succeeded")
            return result
        errors.append("DemJSON: not an object")
    except Exception as e:
        errors.append(f"DemJSON: {str(e)}")

    # Layer 5: skip stray braces ahead of the real object
    result = _first_decoded_object(response_text or "")
    if result is not None:
        logger.debug("✅ Layer 5: Embedded object found past stray braces")
        return result

    logger.error(f"❌ JSON parsing failed after all layers: {'; '.join(errors[:2])}")
    logger.debug(f"Response preview: {(response_text or '')[:200]}...")
    raise InvalidAIResponseError()
