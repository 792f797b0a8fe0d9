import re

from crudbox.errors import ValidationError

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE", "CONNECT")

_SUPPORTED_METHODS = set(HTTP_METHODS)

_PARAM_SEGMENT = re.compile(r"^\{[^{}/]+\}$")


def normalize_method(method: str) -> str:
    normalized = method.strip().upper()
    if normalized not in _SUPPORTED_METHODS:
        raise ValidationError(f"Unsupported HTTP method '{method}'. Supported: {list(HTTP_METHODS)}")
    return normalized


def normalize_path(path: str) -> str:
    """Return ``path`` with a leading slash, no repeated slashes and no trailing slash.

    The root path stays ``/``. Query strings are not part of a route and must be
    stripped by the caller.
    """
    segments = [segment for segment in path.strip().split("/") if segment]
    return "/" + "/".join(segments)


def split_segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def is_param_segment(segment: str) -> bool:
    return _PARAM_SEGMENT.match(segment) is not None


def validate_path_template(path: str) -> str:
    """Normalise a stored path pattern and reject malformed parameter segments."""
    normalized = normalize_path(path)
    for segment in split_segments(normalized):
        if ("{" in segment or "}" in segment) and not is_param_segment(segment):
            raise ValidationError(
                f"Invalid path segment '{segment}' in '{path}': parameters must span a whole segment, e.g. '{{id}}'"
            )
    return normalized
