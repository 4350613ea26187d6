import logging
import sys
from argparse import ArgumentParser
from pathlib import Path

import httpx

from flux.flux_datatypes import FluxError
from flux.flux_embed import load_document, run_document
from flux.flux_lexer import tokenize
from flux.flux_parser import parse
from flux.flux_printer import Printer
from flux.flux_runtime import ScriptRunner
from flux.flux_serialize import serialize

HTML_SUFFIXES = (".html", ".htm")


# A basic input prompt, replaceable in tests.
def read_line(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()


def _read_source(file_path: str) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)


def run_script_file(file_path: str):
    """Run a Flux script file non-interactively and exit with appropriate status."""
    if file_path.lower().endswith(HTML_SUFFIXES):
        run_html(file_path)
        return
    source = _read_source(file_path)
    result = ScriptRunner().handle_script(source)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)


def run_html(locator: str):
    """Run every <flux> block of a host document; exit 1 if any block failed."""
    try:
        html = load_document(locator)
    except FileNotFoundError:
        print(f"Error: file not found: {locator}", file=sys.stderr)
        raise SystemExit(1)
    except httpx.HTTPError as e:
        print(f"Error: could not fetch {locator}: {e}", file=sys.stderr)
        raise SystemExit(1)
    results = run_document(html)
    if any(r.status == 'error' for r in results):
        raise SystemExit(1)


def dump(file_path: str, what: str, fmt: str):
    """Print the tokens or the statement tree of a script."""
    source = _read_source(file_path)
    try:
        tokens = tokenize(source)
        value = tokens if what == "tokens" else parse(tokens)
    except FluxError as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
        raise SystemExit(1)
    print(serialize(value, fmt=fmt))


def repl():
    print("Flux REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    runner = ScriptRunner()
    printer = Printer()
    environment = runner.new_environment()

    while True:
        try:
            raw = read_line(">> ")
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line == "exit":
                break

            result = runner.handle_script(line, environment)

            if result.status == 'error':
                print(result.format_error(), file=sys.stderr)
                continue

            if result.value is not None:
                print(printer.pformat(result.value))

        except EOFError:
            print("\nExiting.")
            break


def main(argv=None):
    """Run a script file when provided, otherwise start the interactive REPL."""
    parser = ArgumentParser(description="The Flux scripting language")
    parser.add_argument("file", type=str, nargs="?", default=None)
    parser.add_argument("--html", metavar="LOCATOR", default=None,
                        help="run the <flux> blocks of a document path or http(s) URL")
    parser.add_argument("--tokens", action="store_true", help="print the token list of FILE")
    parser.add_argument("--ast", action="store_true", help="print the statement tree of FILE")
    parser.add_argument("--format", choices=("json", "yaml"), default="json")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if args.html is not None:
        run_html(args.html)
        return
    if args.file is None:
        if args.tokens or args.ast:
            parser.error("--tokens/--ast need a FILE")
        repl()
        return
    if args.tokens or args.ast:
        dump(args.file, "tokens" if args.tokens else "ast", args.format)
        return
    run_script_file(args.file)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
