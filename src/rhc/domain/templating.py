"""Pure template functions for request definitions.

Variables are written ``{name}`` anywhere in the URL, query parameters,
headers, or body of a definition.  Substitution is plain text replacement:
values are inserted verbatim, with no escaping for the destination syntax.
A value containing ``"`` inserted into a JSON body can therefore produce
invalid JSON; that surfaces later, when the body is parsed before sending.
"""

import re
from collections.abc import Iterator, Mapping

from rhc.models import Body, Headers, KeyValue, Query, RequestDefinition

# A name runs from "{" to the next "}" and may not contain braces,
# whitespace, or quotes.  The last rule keeps JSON objects such as
# {"id":1} in request bodies from being read as variables.
VARIABLE_PATTERN = re.compile(r"\{([^{}\s\"']+)\}")


class UnresolvedVariable(Exception):
    """Raised by ``render`` when a variable in the definition has no binding."""

    def __init__(self, names: list[str]) -> None:
        super().__init__(f"No value bound for: {', '.join(names)}")
        self.names = names


def extract_from_text(text: str) -> list[str]:
    """Return the distinct variable names in *text*, in order of first appearance."""
    return list(dict.fromkeys(VARIABLE_PATTERN.findall(text)))


def templated_fields(definition: RequestDefinition) -> Iterator[str]:
    """Yield every string field of *definition* that may contain variables."""
    yield definition.request.url
    if definition.query is not None:
        for param in definition.query.params:
            yield param.name
            yield param.value
    if definition.headers is not None:
        for header in definition.headers.headers:
            yield header.name
            yield header.value
    if definition.body is not None:
        content = definition.body.content
        if isinstance(content, str):
            yield content
        else:
            for pair in content:
                yield pair.name
                yield pair.value


def extract_variables(definition: RequestDefinition) -> list[str]:
    """Return the distinct variable names used anywhere in *definition*.

    Names are ordered by first appearance (URL, query, headers, body), which
    is also the order the user is prompted in.
    """
    names: dict[str, None] = {}
    for field in templated_fields(definition):
        for name in extract_from_text(field):
            names.setdefault(name, None)
    return list(names)


def substitute(text: str, bindings: Mapping[str, str]) -> str:
    """Replace each ``{name}`` in *text* for every name in *bindings*.

    Names without a binding are left untouched.
    """
    for name, value in bindings.items():
        text = text.replace(f"{{{name}}}", value)
    return text


def _substitute_pairs(pairs: list[KeyValue], bindings: Mapping[str, str]) -> list[KeyValue]:
    return [
        KeyValue(name=substitute(p.name, bindings), value=substitute(p.value, bindings))
        for p in pairs
    ]


def render(definition: RequestDefinition, bindings: Mapping[str, str]) -> RequestDefinition:
    """Return a copy of *definition* with every variable substituted.

    Raises ``UnresolvedVariable`` if any variable used by the definition is
    missing from *bindings*; the definition is never partially rendered.
    """
    missing = [name for name in extract_variables(definition) if name not in bindings]
    if missing:
        raise UnresolvedVariable(missing)

    update: dict[str, object] = {
        "request": definition.request.model_copy(
            update={"url": substitute(definition.request.url, bindings)}
        )
    }
    if definition.query is not None:
        update["query"] = Query(params=_substitute_pairs(definition.query.params, bindings))
    if definition.headers is not None:
        update["headers"] = Headers(
            headers=_substitute_pairs(definition.headers.headers, bindings)
        )
    if definition.body is not None:
        content = definition.body.content
        if isinstance(content, str):
            new_content: str | list[KeyValue] = substitute(content, bindings)
        else:
            new_content = _substitute_pairs(content, bindings)
        update["body"] = Body(type=definition.body.type, content=new_content)
    return definition.model_copy(update=update)
