# provider_gateway/voip/soap_client.py
"""
VoIP Innovations back-office SOAP transport
-------------------------------------------
A thin SOAP 1.1 client over httpx for the fixed operation set used by the
gateway. One client instance serves one call attempt: the executor builds it
through `VoipClientFactory`, uses it once and closes it.

Responses are returned as plain dict/list/str trees (namespaces stripped)
rooted at the `<Operation>Result` element; SOAP faults are raised as
`ProtocolFault` with the `<detail>` payload preserved.
"""
from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional

import httpx

from provider_gateway.resilience.circuit_breaker import CircuitBreaker
from provider_gateway.resilience.errors import ConfigurationError, ProtocolFault

log = logging.getLogger("gateway.voip.soap")

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
DEFAULT_NAMESPACE = "http://tempuri.org/"
DEFAULT_ENDPOINT = "https://backoffice.voipinnovations.com/Services/APIService.asmx"


# ================================================================
# Envelope building
# ================================================================
def build_envelope(namespace: str, operation: str, params: Dict[str, Any]) -> bytes:
    ET.register_namespace("soap", SOAP_ENV_NS)
    envelope = ET.Element(f"{{{SOAP_ENV_NS}}}Envelope")
    body = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Body")
    op = ET.SubElement(body, operation, {"xmlns": namespace})
    for name, value in params.items():
        _append(op, name, value)
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True)


def _append(parent: ET.Element, name: str, value: Any) -> None:
    if value is None:
        return
    node = ET.SubElement(parent, name)
    if isinstance(value, bool):
        node.text = "true" if value else "false"
    elif isinstance(value, dict):
        for key, item in value.items():
            _append(node, key, item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            if hasattr(item, "to_soap"):
                _append(node, type(item).__name__, item.to_soap())
            elif isinstance(item, dict):
                _append(node, "item", item)
            else:
                _append(node, "string", item)
    else:
        node.text = str(value)


# ================================================================
# Response parsing
# ================================================================
def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def element_to_python(element: ET.Element) -> Any:
    """Leaf -> text; repeated child tags -> list; otherwise a dict."""
    children = list(element)
    if not children:
        return element.text.strip() if element.text and element.text.strip() else None

    result: Dict[str, Any] = {}
    for child in children:
        key = _local(child.tag)
        value = element_to_python(child)
        if key in result:
            existing = result[key]
            if not isinstance(existing, list):
                result[key] = [existing]
            result[key].append(value)
        else:
            result[key] = value
    return result


def _body(root: ET.Element) -> Optional[ET.Element]:
    return root.find(f"{{{SOAP_ENV_NS}}}Body")


def parse_fault(content: bytes) -> Optional[ProtocolFault]:
    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        return None
    body = _body(root)
    if body is None:
        return None
    fault = body.find(f"{{{SOAP_ENV_NS}}}Fault")
    if fault is None:
        return None

    code = fault.findtext("faultcode") or "soap:Server"
    reason = fault.findtext("faultstring") or "Unknown fault"
    detail_el = fault.find("detail")
    detail = None
    if detail_el is not None:
        parts: List[str] = [ET.tostring(child, encoding="unicode") for child in detail_el]
        detail = "".join(parts) or (detail_el.text or "").strip() or None
    return ProtocolFault(code, reason, detail)


def parse_result(content: bytes, operation: str) -> Optional[Any]:
    """Return the `<Operation>Result` subtree, or None when the body is empty."""
    if not content or not content.strip():
        return None
    root = ET.fromstring(content)
    body = _body(root)
    if body is None:
        return None
    for response in body:
        if _local(response.tag).lower() != f"{operation}Response".lower():
            continue
        for child in response:
            if _local(child.tag).lower() == f"{operation}Result".lower():
                return element_to_python(child)
    return None


# ================================================================
# Client
# ================================================================
class VoipSoapClient:
    def __init__(
        self,
        *,
        login: str,
        secret: str,
        endpoint_url: str,
        namespace: str,
        timeout_seconds: float,
        breaker: CircuitBreaker,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.login = login
        self.secret = secret
        self.endpoint_url = endpoint_url
        self.namespace = namespace
        self._breaker = breaker
        self._aborted = False
        self._http = httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport,
            headers={"Content-Type": "text/xml; charset=utf-8"},
        )

    async def __aenter__(self) -> "VoipSoapClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if not self._http.is_closed:
            await self._http.aclose()

    def abort(self) -> None:
        """Flag the in-flight request as abandoned; the executor cancels it next."""
        self._aborted = True

    async def invoke(self, operation: str, **params: Any) -> Optional[Any]:
        self._breaker.ensure_closed()
        # True/False once the provider's health is known; None releases the slot
        healthy: Optional[bool] = None
        try:
            payload = build_envelope(
                self.namespace,
                operation,
                {"login": self.login, "secret": self.secret, **params},
            )
            headers = {"SOAPAction": f'"{self.namespace}{operation}"'}

            try:
                response = await self._http.post(self.endpoint_url, content=payload, headers=headers)
            except asyncio.CancelledError:
                if self._aborted:
                    healthy = False
                raise
            except httpx.TransportError:
                healthy = False
                raise

            fault = parse_fault(response.content)
            if fault is not None:
                healthy = True
                log.error("SOAP fault on %s: %s - %s", operation, fault.fault_code, fault.reason)
                raise fault

            healthy = response.status_code < 500
            response.raise_for_status()
            return parse_result(response.content, operation)
        finally:
            if healthy is True:
                self._breaker.record_success()
            elif healthy is False:
                self._breaker.record_failure()
            else:
                self._breaker.release()


class VoipClientFactory:
    """Builds a fresh VoipSoapClient per call attempt; the breaker is shared."""

    def __init__(
        self,
        *,
        login: str,
        secret: str,
        endpoint_url: str = DEFAULT_ENDPOINT,
        namespace: str = DEFAULT_NAMESPACE,
        timeout_seconds: float = 30,
        breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.login = login
        self.secret = secret
        self.endpoint_url = endpoint_url
        self.namespace = namespace
        self.timeout_seconds = timeout_seconds
        self.breaker = breaker or CircuitBreaker(name="voip-soap")
        self._transport = transport

    def __call__(self) -> VoipSoapClient:
        if not self.login or not self.secret:
            log.error("SoapApiSettings: Login and Secret Must be configured")
            raise ConfigurationError("SoapApiSettings: Login and Secret are required")

        return VoipSoapClient(
            login=self.login,
            secret=self.secret,
            endpoint_url=self.endpoint_url,
            namespace=self.namespace,
            timeout_seconds=self.timeout_seconds,
            breaker=self.breaker,
            transport=self._transport,
        )
