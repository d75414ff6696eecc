"""URL-template resources decorated by a session.

A :class:`SecureResource` binds request parameters into a URL template
and sends each request through a
:class:`~secure_session.client.sync_client.SecureClient` after letting a
:class:`~secure_session.session.Session` decorate it. The resource never
touches session internals; :meth:`Session.manage_request_conf` is its
only contact point.

URL templates mark parameters with ``:name``::

    things = SecureResource(session, client,
                            "https://example.com:9001/thing/:thingId",
                            {"thingId": "@id"},
                            {"kick_it": ResourceAction(method="PUT", params={"volume": 11})})

    things.query()                      # GET  /thing
    things.get({"thingId": 3})          # GET  /thing/3
    things.save({"id": 3, "a": 1})      # POST /thing/3   (thingId taken from body["id"])
    things.kick_it(body={"a": 1})       # PUT  /thing?volume=11

Objects in a response come back as :class:`ResourceItem` dicts whose
``save()``, ``remove()``, ``delete()`` and ``call(name)`` send the item
itself through the same resource.

A default starting with ``@`` reads the named field from the request body.
Parameters that do not appear in the template are sent as query
parameters; template parameters without a value are dropped from the URL
together with their leading slash.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Callable, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field

from secure_session.client.response import extract_response_data
from secure_session.exceptions import InvalidUsageError, ResponseError
from secure_session.models import RequestConf

if TYPE_CHECKING:
    from secure_session.client.sync_client import SecureClient
    from secure_session.session import Session

# ``:name`` but not a port number (``:9001``) or an escaped ``\:``.
_PARAM_RE = re.compile(r"(?<!\\):([A-Za-z_]\w*)")


class ResourceAction(BaseModel):
    """One named operation on a resource."""

    method: str = "GET"
    params: dict[str, Any] = Field(default_factory=dict)
    has_body: Optional[bool] = Field(
        default=None, description="Send a body; defaults to True for POST/PUT/PATCH"
    )

    def sends_body(self) -> bool:
        if self.has_body is not None:
            return self.has_body
        return self.method.upper() in ("POST", "PUT", "PATCH")


DEFAULT_ACTIONS: dict[str, ResourceAction] = {
    "get": ResourceAction(method="GET"),
    "query": ResourceAction(method="GET"),
    "save": ResourceAction(method="POST"),
    "remove": ResourceAction(method="DELETE"),
    "delete": ResourceAction(method="DELETE"),
}


def bind_url(template: str, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Substitute ``:name`` placeholders in *template*.

    Returns:
        The bound URL and the parameters that were not consumed by the
        template (with ``None`` values removed).
    """
    names = set(_PARAM_RE.findall(template))

    def substitute(match: re.Match[str]) -> str:
        value = params.get(match.group(1))
        if value is None:
            return ""
        return quote(str(value), safe="")

    url = _PARAM_RE.sub(substitute, template)
    url = url.replace("\\:", ":")
    # Collapse the slashes left behind by dropped segments, but keep "scheme://".
    scheme, sep, rest = url.partition("://")
    if sep:
        url = scheme + sep + re.sub(r"/{2,}", "/", rest)
    else:
        url = re.sub(r"/{2,}", "/", url)
    url = re.sub(r"/+\.", ".", url)
    if len(url) > 1 and not url.endswith("://"):
        url = url.rstrip("/") or "/"

    query = {
        key: value for key, value in params.items() if key not in names and value is not None
    }
    return url, query


class SecureResource:
    """A REST resource whose requests are decorated by a session.

    Args:
        session: The session that adds the routing key and credentials.
        client: An entered :class:`SecureClient`.
        url_template: URL with ``:name`` placeholders.
        param_defaults: Default parameter values; ``"@field"`` reads
            ``field`` from the request body.
        actions: Extra or overriding actions, by name. Each becomes a
            method on the resource.
    """

    def __init__(
        self,
        session: Session,
        client: SecureClient,
        url_template: str,
        param_defaults: Optional[dict[str, Any]] = None,
        actions: Optional[dict[str, ResourceAction]] = None,
    ) -> None:
        self._session = session
        self._client = client
        self._template = url_template
        self._defaults = dict(param_defaults or {})
        self._actions = {**DEFAULT_ACTIONS, **(actions or {})}

    def __getattr__(self, name: str) -> Callable[..., Any]:
        actions = self.__dict__.get("_actions", {})
        if name in actions:
            return lambda params=None, body=None: self.call(name, params, body)
        raise AttributeError(f"{type(self).__name__!s} has no action {name!r}")

    def get(self, params: Optional[dict[str, Any]] = None) -> Any:
        return self.call("get", params)

    def query(self, params: Optional[dict[str, Any]] = None) -> Any:
        return self.call("query", params)

    def save(self, body: Any = None, params: Optional[dict[str, Any]] = None) -> Any:
        return self.call("save", params, body)

    def remove(self, params: Optional[dict[str, Any]] = None, body: Any = None) -> Any:
        return self.call("remove", params, body)

    def delete(self, params: Optional[dict[str, Any]] = None, body: Any = None) -> Any:
        return self.call("delete", params, body)

    def call(
        self,
        action_name: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Run *action_name* and return the decoded response body.

        JSON objects, alone or inside a list, come back as
        :class:`ResourceItem` instances bound to this resource.

        Raises:
            InvalidUsageError: If *action_name* is not defined.
            ResponseError: If the API answers with a 4xx or 5xx status.
                The session has already handled the response by then.
            ConnectionError_: On network failures.
        """
        action = self._actions.get(action_name)
        if action is None:
            raise InvalidUsageError(f"Unknown resource action: {action_name}")
        merged = {**self._resolve_defaults(body), **action.params, **(params or {})}
        url, query = bind_url(self._template, merged)

        conf = RequestConf(
            method=action.method.upper(),
            url=url,
            params=query,
            headers={"Accept": "application/json"},
            json_body=body if action.sends_body() else None,
        )
        response = self._client.send(conf, session=self._session)
        if response.status_code >= 400:
            raise ResponseError(
                f"HTTP {response.status_code} from {conf.method} {url}",
                status_code=response.status_code,
            )
        return self._wrap(extract_response_data(response))

    def _resolve_defaults(self, body: Any) -> dict[str, Any]:
        resolved: dict[str, Any] = {}
        for key, value in self._defaults.items():
            if isinstance(value, str) and value.startswith("@"):
                resolved[key] = body.get(value[1:]) if isinstance(body, dict) else None
            else:
                resolved[key] = value
        return resolved

    def _wrap(self, data: Any) -> Any:
        if isinstance(data, dict):
            return ResourceItem(self, data)
        if isinstance(data, list):
            return [ResourceItem(self, item) if isinstance(item, dict) else item for item in data]
        return data


class ResourceItem(dict):
    """A decoded object that remembers the resource it came from.

    Behaves as a plain ``dict`` and adds instance actions that send the
    item itself as the body, then replace its contents with the object
    the API returns::

        thing = things.get({"thingId": 3})
        thing["name"] = "whosit"
        thing.save()        # POST /thing/3
    """

    def __init__(self, resource: SecureResource, data: dict[str, Any]) -> None:
        super().__init__(data)
        self._resource = resource

    def call(self, action_name: str, params: Optional[dict[str, Any]] = None) -> ResourceItem:
        result = self._resource.call(action_name, params, dict(self))
        if isinstance(result, dict):
            self.clear()
            self.update(result)
        return self

    def save(self, params: Optional[dict[str, Any]] = None) -> ResourceItem:
        return self.call("save", params)

    def remove(self, params: Optional[dict[str, Any]] = None) -> ResourceItem:
        return self.call("remove", params)

    def delete(self, params: Optional[dict[str, Any]] = None) -> ResourceItem:
        return self.call("delete", params)
