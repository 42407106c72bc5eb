"""Sending a rendered request definition over HTTP.

Raises ``RequestError`` for anything that stops the request from being sent
or answered: a body that is not valid JSON after substitution, an invalid
URL or header, a timeout, or a connection failure.
"""

import json
import logging
from typing import Any

import requests

from rhc.config import Config
from rhc.models import RequestDefinition

logger = logging.getLogger(__name__)


class RequestError(Exception):
    """Raised when a request cannot be prepared or sent."""


def prepare_kwargs(definition: RequestDefinition, config: Config) -> dict[str, Any]:
    """Build the keyword arguments for ``requests.request``."""
    kwargs: dict[str, Any] = {
        "method": definition.request.method.value,
        "url": definition.request.url,
        "timeout": config.timeout,
        "allow_redirects": True,
    }

    if definition.query is not None and definition.query.params:
        kwargs["params"] = [(p.name, p.value) for p in definition.query.params]

    if definition.headers is not None and definition.headers.headers:
        kwargs["headers"] = {h.name: h.value for h in definition.headers.headers}

    body = definition.body
    if body is None:
        return kwargs
    content = body.content
    if isinstance(content, list):
        kwargs["data"] = [(p.name, p.value) for p in content]
    elif body.type == "json":
        try:
            # Substitution is purely textual, so the content can only be
            # checked once every variable has been filled in.
            kwargs["json"] = json.loads(content)
        except json.JSONDecodeError as exc:
            raise RequestError(f"Body is not valid JSON after substitution: {exc}") from exc
    else:
        kwargs["data"] = content.encode("utf-8")
    return kwargs


def send_request(definition: RequestDefinition, config: Config) -> requests.Response:
    """Send *definition* and return the response. Raises RequestError on failure."""
    kwargs = prepare_kwargs(definition, config)
    logger.info("%s %s", kwargs["method"], kwargs["url"])
    try:
        response = requests.request(**kwargs)
    except requests.exceptions.Timeout as exc:
        raise RequestError(f"Request timed out: {exc}") from exc
    except requests.exceptions.ConnectionError as exc:
        raise RequestError(f"Connection error: {exc}") from exc
    except (requests.exceptions.RequestException, ValueError) as exc:
        raise RequestError(f"Request failed: {exc}") from exc
    logger.info("%s %s -> %d", kwargs["method"], kwargs["url"], response.status_code)
    return response
