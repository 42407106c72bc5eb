"""Printing an HTTP response to the terminal."""

import json

import requests
from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text


def _status_style(status_code: int) -> str:
    if status_code < 300:
        return "bold green"
    if status_code < 400:
        return "bold cyan"
    if status_code < 500:
        return "bold yellow"
    return "bold red"


def format_body(response: requests.Response) -> tuple[str, bool]:
    """Return the body text and whether it is JSON.

    JSON bodies are re-indented; anything else is returned as received.
    """
    content_type = response.headers.get("Content-Type", "")
    text = response.text
    if "json" not in content_type.lower():
        return text, False
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False), True
    except ValueError:
        return text, False


def print_response(
    response: requests.Response,
    console: Console,
    only_body: bool = False,
    theme: str = "monokai",
) -> None:
    """Print *response*: status line and headers, then the body.

    With *only_body* just the body is printed, which keeps the output
    pipeable.  JSON bodies are syntax-highlighted when the console is a
    terminal.
    """
    if not only_body:
        status = Text(f"{response.status_code} {response.reason or ''}".rstrip())
        status.stylize(_status_style(response.status_code))
        console.print(status)
        for name, value in response.headers.items():
            console.print(Text.assemble((name, "cyan"), ": ", value))
        console.print()

    body, is_json = format_body(response)
    if not body:
        return
    if is_json and console.is_terminal:
        console.print(Syntax(body, "json", theme=theme, background_color="default"))
    else:
        console.print(body, markup=False, highlight=False, soft_wrap=True)
