"""Stack capture and provenance derivation.

Frames are rendered innermost first, one per line::

    at /app/modules/cart/cart.py:42 checkout (total = price * qty)

The same location-first shape is what browser modules report, so a stack
captured here and a stack shipped up from a frontend error go through the
same parser. V8 style frames (``at fn (https://host/modules/x/x.js:1:2)``)
are understood as well.
"""

import re
import traceback
from collections.abc import Mapping
from dataclasses import dataclass

from component_logger.models import ErrorCapture, OriginKind, Provenance

CALL_SITE_MARKER = "at "

# ":12" or ":12:3" trailing a path
_LOCATION_SUFFIX = re.compile(r"(?::\d+)+$")


@dataclass(frozen=True)
class StackMarkers:
    """Path fragments that classify stack lines.

    internal: lines containing any of these belong to the logger itself
    and are dropped. module / component: the first surviving line that
    contains one of these names the entry's origin.
    """

    internal: tuple = ("/component_logger/",)
    module: str = "/modules/"
    component: str = "/components/"


DEFAULT_MARKERS = StackMarkers()


def format_frames(frames) -> str:
    """Render traceback.FrameSummary objects, one line each."""
    lines = []
    for frame in frames:
        line = f"{CALL_SITE_MARKER}{frame.filename}:{frame.lineno} {frame.name}"
        if frame.line:
            line += f" ({frame.line.strip()})"
        lines.append(line)
    return "\n".join(lines)


def capture_stack() -> str:
    """Capture the caller's stack, innermost frame first."""
    frames = traceback.extract_stack()[:-1]
    return format_frames(reversed(frames))


def error_stack(exc: BaseException) -> str | None:
    """Render the traceback of a raised exception, raise site first.

    Returns None for an exception that was never raised.
    """
    if exc.__traceback__ is None:
        return None
    return format_frames(reversed(traceback.extract_tb(exc.__traceback__)))


def _stack_text(value) -> str | None:
    """Frontend payloads sometimes carry a non-string stack; treat it as absent."""
    return value if isinstance(value, str) else None


def capture_error(error) -> ErrorCapture:
    """Copy message, stack and type name out of *error*.

    Accepts a Python exception, a frontend error payload mapping with
    ``message`` / ``stack`` / ``name`` keys, or any object exposing those
    attributes.
    """
    if isinstance(error, BaseException):
        return ErrorCapture(
            message=str(error),
            stack=error_stack(error),
            type_name=type(error).__name__,
        )
    if isinstance(error, Mapping):
        return ErrorCapture(
            message=error.get("message"),
            stack=_stack_text(error.get("stack")),
            type_name=error.get("name") or error.get("type"),
        )
    return ErrorCapture(
        message=getattr(error, "message", None),
        stack=_stack_text(getattr(error, "stack", None)),
        type_name=getattr(error, "name", None) or type(error).__name__,
    )


def _path_token(line: str, marker: str):
    """Find the whitespace/paren delimited token holding *marker*."""
    return re.search(r"[^\s()]*" + re.escape(marker) + r"[^\s()]*", line)


def parse_frame(line: str, markers: StackMarkers = DEFAULT_MARKERS) -> Provenance | None:
    """Extract provenance from one stack line, or None if it names no
    frontend module or component.

    Slicing is best effort: a line with a marker but an unexpected shape
    still yields a Provenance, possibly with an odd function name.
    """
    if markers.module in line:
        kind, marker = OriginKind.FRONTEND_MODULE, markers.module
    elif markers.component in line:
        kind, marker = OriginKind.FRONTEND_COMPONENT, markers.component
    else:
        return None

    match = _path_token(line, marker)
    if match is None:
        # marker configured with whitespace or parens in it
        return Provenance(origin_kind=kind, origin_name="")
    location = match.group(0)
    function = None

    # Firefox / Safari: "fn@https://host/modules/x/x.js:1:2"
    if "@" in location.split(marker, 1)[0]:
        function, location = location.split("@", 1)

    path = _LOCATION_SUFFIX.sub("", location)
    basename = path[path.rfind("/") + 1:]
    name = basename[:basename.rfind(".")] if "." in basename else basename

    if function is None:
        if match.start() > 0 and line[match.start() - 1] == "(":
            # V8: "at fn (path:line:col)"
            head = line[:match.start() - 1].strip()
            function = head[len(CALL_SITE_MARKER):] if head.startswith(CALL_SITE_MARKER) else head
        else:
            # location first: "at path:line fn (source)"
            function = line[match.end():].split(" (", 1)[0].strip()

    return Provenance(origin_kind=kind, origin_name=name, origin_function=function or None)


def derive_provenance(
    stack_text: str | None, markers: StackMarkers = DEFAULT_MARKERS
) -> tuple[Provenance | None, str | None]:
    """Return (provenance, normalized stack) for a multi-line stack text.

    Lines containing an internal marker are dropped. The first remaining
    line naming a module or component sets the provenance; later ones are
    ignored. The surviving lines, unmodified, form the normalized stack.
    Absent stack text yields (None, None).
    """
    if not stack_text or not isinstance(stack_text, str):
        return None, None

    lines = [
        line for line in stack_text.split("\n")
        if not any(internal in line for internal in markers.internal)
    ]

    provenance = None
    for line in lines:
        provenance = parse_frame(line, markers)
        if provenance is not None:
            break

    return provenance, "\n".join(lines)
