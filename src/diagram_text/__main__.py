"""CLI entry point for diagram-text."""

import logging
import sys
from collections.abc import Mapping

import click

from diagram_text.formats import available_formats, get_format
from diagram_text.model.document import Document
from diagram_text.reconcile import reconcile


def _read_input(path: str | None) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    try:
        with open(path) as f:
            return f.read()
    except OSError as e:
        click.echo(f"error: cannot read '{path}': {e}", err=True)
        sys.exit(1)


def _write_output(text: str, output: str | None) -> None:
    if output:
        try:
            with open(output, "w") as f:
                f.write(text)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(text, nl=False)


def _report_errors(errors: Mapping[int, str]) -> None:
    for line in errors:
        click.echo(f"line {line + 1}: {errors[line]}", err=True)


_format_option = click.option(
    "--format",
    "-f",
    "format_name",
    type=click.Choice(available_formats()),
    default="default",
    help="Text format of the input",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log reconcile decisions to stderr")
def main(verbose: bool) -> None:
    """Text-to-diagram DSL tools: check, format and highlight diagram text."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("input", required=False, type=click.Path(allow_dash=True))
@_format_option
def check(input: str | None, format_name: str) -> None:
    """Report parse and validation errors, exiting 1 if there are any."""
    result = get_format(format_name).parse(_read_input(input))
    if result.errors:
        _report_errors(result.errors)
        sys.exit(1)
    click.echo(f"ok: {len(result.elements)} top-level element(s)")


@main.command(name="format")
@click.argument("input", required=False, type=click.Path(allow_dash=True))
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@_format_option
def format_cmd(input: str | None, output: str | None, format_name: str) -> None:
    """Rewrite diagram text in canonical form."""
    fmt = get_format(format_name)
    result = fmt.parse(_read_input(input))
    if result.errors:
        _report_errors(result.errors)
        sys.exit(1)

    document = Document()
    reconcile(result.elements, document)
    _write_output("\n".join(fmt.serialize(document.elements)), output)


@main.command()
@click.argument("input", required=False, type=click.Path(allow_dash=True))
@_format_option
def highlight(input: str | None, format_name: str) -> None:
    """Print the input as syntax-highlighted HTML lines."""
    fmt = get_format(format_name)
    text = _read_input(input)
    lines = text.split("\n")
    errors = fmt.parse(text).errors
    if fmt.highlight_syntax is None:
        highlighted = lines
    else:
        highlighted = fmt.highlight_syntax(lines, errors)
    click.echo("\n".join(highlighted))


if __name__ == "__main__":
    main()
