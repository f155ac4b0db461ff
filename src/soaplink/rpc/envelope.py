"""
SOAP 1.1 envelope framing. Header/Body contents stay opaque markup: build_envelope() binds
params into elements, decode_envelope() returns inner markup as sent, transcoded to UTF-8.
"""
from __future__ import annotations

import codecs
import re
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from lxml import etree

from soaplink.exceptions import EnvelopeDecodeError, EnvelopeError

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
XSD_NS = "http://www.w3.org/2001/XMLSchema"

_NSMAP = {"xsi": XSI_NS, "xsd": XSD_NS, "soap": SOAP_ENV_NS}
_INDENT = "    "
_CHUNK = 64 * 1024
_SECTIONS = ("Header", "Body")

_XML_DECL = re.compile(rb"""^\s*<\?xml[^>]*?\bencoding\s*=\s*["']([A-Za-z][A-Za-z0-9._-]*)["']""")
# Tokens that can hold "<" or ">" are matched whole so tag boundaries stay exact.
_MARKUP = re.compile(
    r"""<!--.*?-->"""
    r"""|<!\[CDATA\[.*?\]\]>"""
    r"""|<\?.*?\?>"""
    r"""|<!DOCTYPE(?:[^\[>]|\[.*?\])*>"""
    r"""|<(?P<close>/?)(?P<name>[^\s/>]+)(?P<attrs>(?:"[^"]*"|'[^']*'|[^'">])*)>""",
    re.S,
)


@dataclass(frozen=True)
class SoapEnvelope:
    header: bytes = b""
    body: bytes = b""


def _tag(name: str, namespace: str) -> str:
    return f"{{{namespace}}}{name}" if namespace else name


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _bind(parent: etree._Element, params: Mapping[str, Any], namespace: str) -> None:
    """Name/value -> elements. Mappings nest, lists/tuples repeat the element, None is empty."""
    for name, value in params.items():
        items = value if isinstance(value, (list, tuple)) else (value,)
        for item in items:
            el = etree.SubElement(parent, _tag(name, namespace))
            if isinstance(item, Mapping):
                _bind(el, item, namespace)
            elif item is not None:
                el.text = _text(item)


def build_envelope(
    method: str,
    params: Mapping[str, Any],
    *,
    namespace: str = "",
    header_name: str = "",
    header_params: Mapping[str, Any] | None = None,
) -> bytes:
    """
    Serialize one call: soap:Header (only when header_params is not None) and soap:Body
    with <method xmlns=namespace>. Indented, UTF-8, no XML declaration.
    """
    nsmap = {None: namespace} if namespace else None
    try:
        envelope = etree.Element(_tag("Envelope", SOAP_ENV_NS), nsmap=_NSMAP)
        if header_params is not None:
            header = etree.SubElement(envelope, _tag("Header", SOAP_ENV_NS))
            if header_name:
                header = etree.SubElement(header, _tag(header_name, namespace), nsmap=nsmap)
                _bind(header, header_params, namespace)
            else:
                # No wrapper element to carry xmlns: params stay unqualified.
                _bind(header, header_params, "")
        body = etree.SubElement(envelope, _tag("Body", SOAP_ENV_NS))
        call = etree.SubElement(body, _tag(method, namespace), nsmap=nsmap)
        _bind(call, params, namespace)
        etree.indent(envelope, space=_INDENT)
        return etree.tostring(envelope, encoding="utf-8", xml_declaration=False)
    except (ValueError, TypeError, UnicodeDecodeError) as e:
        raise EnvelopeError(f"cannot serialize {method!r}: {e}") from e


def _chunks(data: bytes) -> Iterator[bytes]:
    for i in range(0, len(data), _CHUNK):
        yield data[i:i + _CHUNK]


def _source_encoding(data: bytes) -> str:
    if data.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return "utf-16"
    m = _XML_DECL.match(data)
    return m.group(1).decode("ascii") if m else "utf-8"


def _raw_sections(data: bytes) -> dict[str, bytes]:
    """Inner markup of Header/Body (children of the root) exactly as sent, re-encoded as UTF-8."""
    encoding = _source_encoding(data)
    try:
        text = data.decode(encoding, errors="replace")
    except LookupError as e:
        raise EnvelopeDecodeError(f"unsupported response encoding {encoding!r}") from e
    sections: dict[str, bytes] = {}
    depth = 0
    current = ""
    start = 0
    for m in _MARKUP.finditer(text):
        name = m.group("name")
        if name is None:
            continue
        local = name.rpartition(":")[2]
        if m.group("close"):
            if depth == 2 and current:
                sections.setdefault(current, text[start:m.start()].encode("utf-8"))
                current = ""
            depth -= 1
        elif m.group("attrs").endswith("/"):
            if depth == 1 and local in _SECTIONS:
                sections.setdefault(local, b"")
        else:
            depth += 1
            if depth == 2:
                current = local if local in _SECTIONS and local not in sections else ""
                start = m.end()
    return sections


def decode_envelope(data: bytes) -> SoapEnvelope:
    """
    Decode a response envelope. Header/Body inner markup is returned byte for byte as sent
    (namespace declarations, CDATA and entity references untouched), only transcoded to UTF-8
    from the encoding declared in the prolog (ISO-8859-1, windows-1252, ...).
    On failure raises EnvelopeDecodeError whose .partial holds whatever Header/Body
    finished decoding before the error.
    """
    parser = etree.XMLPullParser(events=("start", "end"), resolve_entities=False, no_network=True)
    done: set[str] = set()
    root: list[etree._Element] = []

    def drain() -> None:
        for event, el in parser.read_events():
            if event == "start":
                if not root:
                    name = etree.QName(el).localname
                    if name != "Envelope":
                        raise EnvelopeDecodeError(
                            f"expected element type <Envelope> but have <{name}>", partial=SoapEnvelope()
                        )
                    root.append(el)
                continue
            parent = el.getparent()
            if parent is not None and parent.getparent() is None:
                name = etree.QName(el).localname
                if name in _SECTIONS:
                    done.add(name)

    try:
        for chunk in _chunks(data):
            parser.feed(chunk)
            drain()
        parser.close()
        drain()
    except etree.XMLSyntaxError as e:
        drain()
        raise EnvelopeDecodeError(f"malformed response envelope: {e}", partial=_partial(data, done)) from e
    if not root:
        raise EnvelopeDecodeError("empty response", partial=SoapEnvelope())
    return _partial(data, done)


def _partial(data: bytes, done: set[str]) -> SoapEnvelope:
    if not done:
        return SoapEnvelope()
    raw = _raw_sections(data)
    return SoapEnvelope(
        header=raw.get("Header", b"") if "Header" in done else b"",
        body=raw.get("Body", b"") if "Body" in done else b"",
    )
