"""
Element reference resolution (W3C and legacy markers) and element commands.

Run: pytest tests/unit/test_elements.py -v
"""

import pytest

from wdclient import (
    ElementMarker,
    ErrorKind,
    InvalidArgumentError,
    LocatorStrategy,
    ProtocolError,
    ResponseDecodeError,
    WebElement,
    resolve_element_reference,
    resolve_element_references,
)

W3C = "element-6066-11e4-a52e-4f735466cecf"


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

def test_w3c_marker():
    element = resolve_element_reference({W3C: "ref-1"})
    assert element == WebElement(marker=ElementMarker.W3C, reference="ref-1")


def test_legacy_marker():
    element = resolve_element_reference({"ELEMENT": "ref-2"})
    assert element.marker is ElementMarker.LEGACY
    assert element.reference == "ref-2"


def test_w3c_marker_checked_first():
    element = resolve_element_reference({"ELEMENT": "legacy", W3C: "w3c"})
    assert element.marker is ElementMarker.W3C
    assert element.reference == "w3c"


@pytest.mark.parametrize("value", [{}, {"other": "x"}, None])
def test_no_marker_is_not_found(value):
    with pytest.raises(ProtocolError) as exc_info:
        resolve_element_reference(value)
    assert exc_info.value.kind is ErrorKind.NO_SUCH_ELEMENT


@pytest.mark.parametrize("value", ["ref", 42, ["ref"]])
def test_non_object_is_decode_error(value):
    with pytest.raises(ResponseDecodeError):
        resolve_element_reference(value)


def test_non_string_reference_is_decode_error():
    with pytest.raises(ResponseDecodeError):
        resolve_element_reference({W3C: 7})


def test_many_mixed_markers():
    elements = resolve_element_references([{W3C: "a"}, {"ELEMENT": "b"}])
    assert [e.marker for e in elements] == [ElementMarker.W3C, ElementMarker.LEGACY]
    assert [e.reference for e in elements] == ["a", "b"]


@pytest.mark.parametrize("values", [[], None])
def test_empty_list_is_not_found(values):
    with pytest.raises(ProtocolError) as exc_info:
        resolve_element_references(values)
    assert exc_info.value.kind is ErrorKind.NO_SUCH_ELEMENT


def test_unmarked_entry_is_decode_error():
    with pytest.raises(ResponseDecodeError, match="entry 1"):
        resolve_element_references([{W3C: "a"}, {"bogus": "b"}])


def test_to_wire_keeps_marker():
    assert WebElement(marker=ElementMarker.LEGACY, reference="r").to_wire() == {"ELEMENT": "r"}
    assert WebElement(marker=ElementMarker.W3C, reference="r").to_wire() == {W3C: "r"}


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def test_element_find_legacy_server(client, stub):
    stub.on("POST", "/session/abc/element", json_body={"status": 0, "value": {"ELEMENT": "0.123-1"}})
    element = client.element_find(LocatorStrategy.XPATH, "//h1")
    assert element == WebElement(marker=ElementMarker.LEGACY, reference="0.123-1")
    assert stub.body() == {"using": "xpath", "value": "//h1"}


def test_element_find_without_marker(client, stub):
    stub.on("POST", "/session/abc/element", json_body={"value": {}})
    with pytest.raises(ProtocolError) as exc_info:
        client.element_find(LocatorStrategy.CSS_SELECTOR, "h1")
    assert exc_info.value.not_found


def test_elements_find(client, stub):
    stub.on("POST", "/session/abc/elements", json_body={"value": [{W3C: "a"}, {W3C: "b"}]})
    elements = client.elements_find(LocatorStrategy.TAG_NAME, "li")
    assert [e.reference for e in elements] == ["a", "b"]


def test_elements_find_none_matched(client, stub):
    stub.on("POST", "/session/abc/elements", json_body={"value": []})
    with pytest.raises(ProtocolError) as exc_info:
        client.elements_find(LocatorStrategy.TAG_NAME, "li")
    assert exc_info.value.kind is ErrorKind.NO_SUCH_ELEMENT


def test_element_find_from(client, stub):
    stub.on("POST", "/session/abc/element/parent/element", json_body={"value": {W3C: "child"}})
    parent = WebElement(marker=ElementMarker.W3C, reference="parent")
    child = client.element_find_from(parent, LocatorStrategy.CSS_SELECTOR, "span")
    assert child.reference == "child"


def test_element_reference_is_percent_encoded(client, stub):
    stub.on("GET", "/session/abc/element/a/b c/text", json_body={"value": "hello"})
    element = WebElement(marker=ElementMarker.W3C, reference="a/b c")
    assert client.element_text(element) == "hello"
    assert stub.requests[0].url.raw_path == b"/session/abc/element/a%2Fb%20c/text"


def test_locator_strategy_as_plain_string(client, stub):
    stub.on("POST", "/session/abc/element", json_body={"value": {W3C: "r"}})
    assert client.element_find("css selector", "h1").reference == "r"


@pytest.mark.parametrize("by, value", [
    ("", "h1"),
    (LocatorStrategy.CSS_SELECTOR, ""),
    ("by magic", "h1"),
])
def test_locator_is_validated_before_sending(client, stub, by, value):
    with pytest.raises(InvalidArgumentError):
        client.element_find(by, value)
    assert stub.requests == []


def test_empty_element_is_rejected(client, stub):
    with pytest.raises(InvalidArgumentError, match="element is empty"):
        client.element_click(WebElement(marker=ElementMarker.W3C, reference=""))
    assert stub.requests == []


def test_send_keys_dialects(client, stub):
    element = WebElement(marker=ElementMarker.W3C, reference="in")
    stub.on("POST", "/session/abc/element/in/value", json_body={"value": None})
    client.element_send_keys(element, "hi")
    assert stub.body() == {"text": "hi"}
    client.element_send_keys_legacy(element, "hi")
    assert stub.body() == {"value": ["h", "i"]}


def test_element_state_queries(client, stub):
    element = WebElement(marker=ElementMarker.W3C, reference="e")
    stub.on("GET", "/session/abc/element/e/selected", json_body={"value": True})
    stub.on("GET", "/session/abc/element/e/displayed", json_body={"value": False})
    stub.on("GET", "/session/abc/element/e/attribute/href", json_body={"value": None})
    stub.on("GET", "/session/abc/element/e/css/color", json_body={"value": "rgb(0, 0, 0)"})
    stub.on("GET", "/session/abc/element/e/name", json_body={"value": "a"})
    assert client.element_is_selected(element) is True
    assert client.element_is_displayed(element) is False
    assert client.element_attribute(element, "href") is None
    assert client.element_css_value(element, "color") == "rgb(0, 0, 0)"
    assert client.element_tag_name(element) == "a"


def test_shadow_root_sends_element_argument(client, stub):
    host = WebElement(marker=ElementMarker.LEGACY, reference="host")
    stub.on("POST", "/session/abc/execute/sync", json_body={"value": {W3C: "shadow"}})
    root = client.element_find_shadow_root(host)
    assert root.reference == "shadow"
    assert stub.body() == {"script": "return arguments[0].shadowRoot", "args": [{"ELEMENT": "host"}]}
