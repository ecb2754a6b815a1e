"""Element reference resolution for both wire dialects.

A server identifies an element with a one-key JSON object. W3C servers use
the ``element-6066-11e4-a52e-4f735466cecf`` key, legacy servers use
``ELEMENT``. The resolver accepts either and remembers which one matched so
the element can be sent back the same way.
"""

from __future__ import annotations

from typing import Any, List, Mapping

from .errors import ErrorKind, ProtocolError, ResponseDecodeError
from .models import ElementMarker, WebElement

_MARKERS = (ElementMarker.W3C, ElementMarker.LEGACY)


def _lookup(value: Mapping[str, Any]):
    for marker in _MARKERS:
        ref = value.get(marker.value)
        if ref is not None:
            if not isinstance(ref, str):
                raise ResponseDecodeError(f"element reference under {marker.value!r} is not a string: {ref!r}")
            return WebElement(marker=marker, reference=ref)
    return None


def resolve_element_reference(value: Any) -> WebElement:
    """Return the element carried by a single-element response value.

    Raises:
        ProtocolError: with kind ``NO_SUCH_ELEMENT`` if neither marker is present.
        ResponseDecodeError: if ``value`` is not a JSON object.
    """
    if value is None:
        raise ProtocolError(ErrorKind.NO_SUCH_ELEMENT, "element is not found")
    if not isinstance(value, Mapping):
        raise ResponseDecodeError(f"element reference is not an object: {value!r}")
    element = _lookup(value)
    if element is None:
        raise ProtocolError(ErrorKind.NO_SUCH_ELEMENT, "element is not found")
    return element


def resolve_element_references(values: Any) -> List[WebElement]:
    """Return the elements carried by a multi-element response value.

    An empty list means nothing matched and raises ``NO_SUCH_ELEMENT``. An
    entry without a marker is a malformed response, not a missing element.
    """
    if not values:
        raise ProtocolError(ErrorKind.NO_SUCH_ELEMENT, "elements are not found")
    if not isinstance(values, list):
        raise ResponseDecodeError(f"element references are not a list: {values!r}")

    elements: List[WebElement] = []
    for i, value in enumerate(values):
        element = _lookup(value) if isinstance(value, Mapping) else None
        if element is None:
            raise ResponseDecodeError(f"entry {i} carries no element reference: {value!r}")
        elements.append(element)
    return elements
