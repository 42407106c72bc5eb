"""Unit tests for loading definition and environment files."""

from pathlib import Path

import pytest

from rhc.files import (
    DefinitionError,
    find_environment,
    list_all_choices,
    list_all_environments,
    load_choice,
    load_definition,
    load_environment,
)
from rhc.models import Environment, KeyValue, Method

FULL_DEFINITION = """\
[metadata]
name = "Create user"
description = "Adds a user"

[request]
method = "POST"
url = "https://{host}/users"

[query]
params = [{ name = "dry_run", value = "{dry_run}" }]

[headers]
headers = [{ name = "Authorization", value = "Bearer {token}" }]

[body]
type = "json"
content = '{"name": "{name}"}'
"""

MINIMAL_DEFINITION = """\
[request]
method = "GET"
url = "https://example.com/health"
"""


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestLoadDefinition:
    def test_full_definition(self, tmp_path: Path):
        """
        Given a definition using every table
        When it is loaded
        Then every field is populated
        """
        definition = load_definition(_write(tmp_path / "create.toml", FULL_DEFINITION))
        assert definition.metadata.name == "Create user"
        assert definition.request.method is Method.POST
        assert definition.query.params == [KeyValue(name="dry_run", value="{dry_run}")]
        assert definition.headers.headers[0].name == "Authorization"
        assert definition.body.type == "json"

    def test_urlencoded_body(self, tmp_path: Path):
        """
        Given a urlencoded body written as name/value pairs
        When it is loaded
        Then the content is a list of pairs
        """
        text = MINIMAL_DEFINITION + (
            '\n[body]\ntype = "urlencoded"\ncontent = [{ name = "user", value = "{user}" }]\n'
        )
        definition = load_definition(_write(tmp_path / "form.toml", text))
        assert definition.body.content == [KeyValue(name="user", value="{user}")]

    def test_body_type_mismatch_rejected(self, tmp_path: Path):
        """
        Given a json body whose content is a list
        When it is loaded
        Then DefinitionError is raised
        """
        text = MINIMAL_DEFINITION + (
            '\n[body]\ntype = "json"\ncontent = [{ name = "a", value = "b" }]\n'
        )
        with pytest.raises(DefinitionError):
            load_definition(_write(tmp_path / "bad.toml", text))

    def test_unknown_method_rejected(self, tmp_path: Path):
        """
        Given an unsupported HTTP method
        When the definition is loaded
        Then DefinitionError is raised
        """
        text = '[request]\nmethod = "FETCH"\nurl = "https://x/"\n'
        with pytest.raises(DefinitionError):
            load_definition(_write(tmp_path / "bad.toml", text))

    def test_unknown_table_rejected(self, tmp_path: Path):
        """
        Given a definition with an unknown top-level table
        When it is loaded
        Then DefinitionError is raised
        """
        text = MINIMAL_DEFINITION + "\n[cookies]\nsession = \"x\"\n"
        with pytest.raises(DefinitionError):
            load_definition(_write(tmp_path / "bad.toml", text))

    def test_invalid_toml_rejected(self, tmp_path: Path):
        """
        Given a file that is not valid TOML
        When it is loaded
        Then DefinitionError mentions the file
        """
        path = _write(tmp_path / "broken.toml", "[request\n")
        with pytest.raises(DefinitionError, match="broken.toml"):
            load_definition(path)


class TestListAllChoices:
    def test_sorted_recursive_listing(self, tmp_path: Path):
        """
        Given definitions in nested directories
        When the directory is listed
        Then every file appears, sorted by path, named by relative path
        """
        _write(tmp_path / "users" / "list.toml", MINIMAL_DEFINITION)
        _write(tmp_path / "health.toml", MINIMAL_DEFINITION)
        _write(tmp_path / "notes.txt", "ignored")

        choices = list_all_choices(tmp_path)

        assert [c.name for c in choices] == ["health", "users/list"]

    def test_metadata_name_used_when_present(self, tmp_path: Path):
        """
        Given a definition with a metadata name
        When it is listed
        Then the metadata name is shown
        """
        _write(tmp_path / "create.toml", FULL_DEFINITION)
        choices = list_all_choices(tmp_path)
        assert choices[0].name == "Create user"
        assert choices[0].description == "Adds a user"

    def test_broken_file_kept_with_error(self, tmp_path: Path):
        """
        Given one valid and one malformed definition
        When the directory is listed
        Then both appear and the malformed one carries its error
        """
        _write(tmp_path / "a.toml", MINIMAL_DEFINITION)
        _write(tmp_path / "b.toml", "[request\n")

        good, bad = list_all_choices(tmp_path)

        assert good.definition is not None and good.error is None
        assert bad.definition is None and bad.error

    def test_missing_directory_is_empty(self, tmp_path: Path):
        """
        Given a directory that does not exist
        When it is listed
        Then the result is empty
        """
        assert list_all_choices(tmp_path / "nope") == []

    def test_load_choice_outside_base(self, tmp_path: Path):
        """
        Given a definition file loaded on its own
        When load_choice is called without a base
        Then the name is the file stem
        """
        choice = load_choice(_write(tmp_path / "ping.toml", MINIMAL_DEFINITION))
        assert choice.name == "ping"
        assert choice.url == "https://example.com/health"


class TestEnvironments:
    def test_load_environment(self, tmp_path: Path):
        """
        Given an environment file
        When it is loaded
        Then its name and variables are read
        """
        path = _write(
            tmp_path / "stg.toml",
            'name = "staging"\nvariables = [{ name = "host", value = "s.example.com" }]\n',
        )
        environment = load_environment(path)
        assert environment.name == "staging"
        assert environment.as_dict() == {"host": "s.example.com"}

    def test_duplicate_variables_rejected(self, tmp_path: Path):
        """
        Given an environment binding the same name twice
        When it is loaded
        Then DefinitionError lists the duplicate
        """
        path = _write(
            tmp_path / "dup.toml",
            'name = "d"\nvariables = [\n'
            '  { name = "host", value = "a" },\n'
            '  { name = "host", value = "b" },\n'
            "]\n",
        )
        with pytest.raises(DefinitionError, match="host"):
            load_environment(path)

    def test_listing_skips_bad_files(self, tmp_path: Path):
        """
        Given one valid and one invalid environment file
        When the directory is listed
        Then only the valid environment is returned
        """
        _write(tmp_path / "a.toml", 'name = "a"\n')
        _write(tmp_path / "b.toml", "variables = 3\n")
        assert [e.name for e in list_all_environments(tmp_path)] == ["a"]

    def test_find_by_name(self):
        """
        Given loaded environments
        When one is looked up by name
        Then its index is returned
        """
        environments = [Environment(name="a"), Environment(name="b")]
        assert find_environment(environments, "b") == 1
        assert find_environment(environments, "c") is None

    def test_find_by_path_appends(self, tmp_path: Path):
        """
        Given an environment file that is not among the loaded environments
        When it is looked up by path
        Then it is loaded and appended
        """
        path = _write(tmp_path / "extra.toml", 'name = "extra"\n')
        environments = [Environment(name="a")]
        assert find_environment(environments, str(path)) == 1
        assert environments[1].name == "extra"

    def test_find_by_path_replaces_same_name(self, tmp_path: Path):
        """
        Given an environment file whose name matches a loaded environment
        When it is looked up by path
        Then it replaces that environment
        """
        path = _write(
            tmp_path / "a.toml", 'name = "a"\nvariables = [{ name = "x", value = "new" }]\n'
        )
        environments = [Environment(name="a")]
        assert find_environment(environments, str(path)) == 0
        assert environments[0].as_dict() == {"x": "new"}
