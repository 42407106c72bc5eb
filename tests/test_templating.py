"""Unit tests for variable extraction, substitution, and rendering."""

import pytest

from rhc.domain.templating import (
    UnresolvedVariable,
    extract_from_text,
    extract_variables,
    render,
    substitute,
)
from rhc.models import Body, Headers, KeyValue, Query, Request, RequestDefinition


def _definition(
    url: str = "https://example.com",
    params: list[tuple[str, str]] | None = None,
    headers: list[tuple[str, str]] | None = None,
    body: Body | None = None,
) -> RequestDefinition:
    return RequestDefinition(
        request=Request(method="GET", url=url),
        query=Query(params=[KeyValue(name=n, value=v) for n, v in params]) if params else None,
        headers=(
            Headers(headers=[KeyValue(name=n, value=v) for n, v in headers]) if headers else None
        ),
        body=body,
    )


class TestExtractFromText:
    def test_finds_names_in_order(self):
        """
        Given text with two variables
        When extract_from_text is called
        Then both names are returned in order of appearance
        """
        assert extract_from_text("https://{host}/users/{id}") == ["host", "id"]

    def test_duplicates_collapse(self):
        """
        Given text using the same variable twice
        When extract_from_text is called
        Then the name appears once
        """
        assert extract_from_text("{a}-{a}") == ["a"]

    def test_json_object_is_not_a_variable(self):
        """
        Given a JSON object literal in the text
        When extract_from_text is called
        Then only real variable references are reported
        """
        assert extract_from_text('{"id": "{user_id}", "n": {"x":1}}') == ["user_id"]

    def test_braced_text_with_whitespace_stays_literal(self):
        """
        Given braces around text containing a space
        When it is extracted and substituted
        Then it is not a variable and is left as written
        """
        text = "https://example.com/{user id}/{id}"
        assert extract_from_text(text) == ["id"]
        assert substitute(text, {"id": "2"}) == "https://example.com/{user id}/2"

    def test_names_are_case_sensitive(self):
        """
        Given two references differing only in case
        When extract_from_text is called
        Then both are reported
        """
        assert extract_from_text("{Token} {token}") == ["Token", "token"]


class TestExtractVariables:
    def test_collects_from_every_templated_field(self):
        """
        Given a definition with variables in the URL, query, headers and body
        When extract_variables is called
        Then every name is found, URL first and body last
        """
        definition = _definition(
            url="https://{host}/items",
            params=[("page", "{page}")],
            headers=[("Authorization", "Bearer {token}")],
            body=Body(type="json", content='{"name": "{name}"}'),
        )
        assert extract_variables(definition) == ["host", "page", "token", "name"]

    def test_form_body_names_and_values(self):
        """
        Given a urlencoded body with variables in both names and values
        When extract_variables is called
        Then both are found
        """
        definition = _definition(
            body=Body(type="urlencoded", content=[KeyValue(name="{field}", value="{value}")])
        )
        assert extract_variables(definition) == ["field", "value"]

    def test_repeated_across_fields_appears_once(self):
        """
        Given the same variable in the URL and a header
        When extract_variables is called
        Then it is listed once
        """
        definition = _definition(url="https://{host}/", headers=[("Host", "{host}")])
        assert extract_variables(definition) == ["host"]

    def test_no_variables(self):
        """
        Given a definition with no templated text
        When extract_variables is called
        Then the result is empty
        """
        assert extract_variables(_definition()) == []


class TestSubstitute:
    def test_replaces_bound_names(self):
        """
        Given text with a bound variable
        When substitute is called
        Then the reference is replaced verbatim
        """
        assert substitute("Bearer {token}", {"token": "abc"}) == "Bearer abc"

    def test_unbound_references_are_left_alone(self):
        """
        Given text with a variable that has no binding
        When substitute is called
        Then that reference is unchanged
        """
        assert substitute("{a}/{b}", {"a": "1"}) == "1/{b}"

    def test_values_are_not_escaped(self):
        """
        Given a value containing a double quote
        When it is substituted into JSON text
        Then the quote is inserted as-is
        """
        assert substitute('{"q": "{v}"}', {"v": 'say "hi"'}) == '{"q": "say "hi""}'


class TestRender:
    def test_full_bindings_leave_no_references(self):
        """
        Given a definition and a value for every variable it uses
        When render is called
        Then no bound name remains as a templated reference anywhere
        """
        definition = _definition(
            url="https://{host}/users/{id}",
            params=[("{key}", "{page}")],
            headers=[("Authorization", "Bearer {token}")],
            body=Body(type="text", content="id={id}"),
        )
        bindings = {"host": "h", "id": "7", "key": "p", "page": "2", "token": "t"}

        rendered = render(definition, bindings)

        assert extract_variables(rendered) == []
        assert rendered.request.url == "https://h/users/7"
        assert rendered.query.params[0] == KeyValue(name="p", value="2")
        assert rendered.headers.headers[0].value == "Bearer t"
        assert rendered.body.content == "id=7"

    def test_missing_binding_raises_with_names(self):
        """
        Given a definition with two variables and a binding for only one
        When render is called
        Then UnresolvedVariable names the missing variable
        """
        definition = _definition(url="https://{host}/{path}")

        with pytest.raises(UnresolvedVariable) as excinfo:
            render(definition, {"host": "h"})

        assert excinfo.value.names == ["path"]

    def test_original_definition_is_untouched(self):
        """
        Given a definition
        When it is rendered
        Then the original still holds its templated text
        """
        definition = _definition(url="https://{host}/")
        render(definition, {"host": "h"})
        assert definition.request.url == "https://{host}/"

    def test_form_body_rendered_pairwise(self):
        """
        Given a urlencoded body with a variable value
        When render is called
        Then the pair's value is substituted
        """
        definition = _definition(
            body=Body(type="urlencoded", content=[KeyValue(name="user", value="{user}")])
        )
        rendered = render(definition, {"user": "ann"})
        assert rendered.body.content == [KeyValue(name="user", value="ann")]

    def test_extra_bindings_are_ignored(self):
        """
        Given bindings for names the definition does not use
        When render is called
        Then rendering succeeds and the definition is unchanged
        """
        definition = _definition()
        assert render(definition, {"unused": "x"}) == definition
