import logging

import httpx
import pytest

from flux.flux_embed import find_flux_blocks, load_document, run_document
from flux.flux_runtime import ScriptRunner


PAGE = """<!doctype html>
<html>
  <head><title>demo</title></head>
  <body>
    <flux>let a = 1; print(a);</flux>
    <p>not a script</p>
    <flux>print(a);</flux>
    <FLUX>print("third");</FLUX>
  </body>
</html>
"""


def test_find_blocks_in_document_order():
    assert find_flux_blocks(PAGE) == ["let a = 1; print(a);", "print(a);", 'print("third");']


def test_find_blocks_decodes_entities():
    assert find_flux_blocks('<flux>print("a &amp; b");</flux>') == ['print("a & b");']


def test_find_blocks_includes_nested_markup_text():
    assert find_flux_blocks("<flux>print(<b>1</b>);</flux>") == ["print(1);"]


def test_nested_flux_elements_are_reported_separately():
    assert find_flux_blocks("<flux>a<flux>b</flux>c</flux>") == ["abc", "b"]


def test_unclosed_block_runs_to_end_of_document():
    assert find_flux_blocks("<flux>print(1);") == ["print(1);"]


def test_document_without_blocks():
    assert find_flux_blocks("<p>plain</p>") == []


@pytest.fixture
def printed():
    return []


@pytest.fixture
def runner_factory(printed):
    return lambda: ScriptRunner(stdout=lambda *args: printed.append(args))


def test_run_document_isolates_blocks(runner_factory, printed, caplog):
    with caplog.at_level(logging.ERROR, logger="flux"):
        results = run_document(PAGE, runner_factory)

    assert [r.status for r in results] == ["success", "error", "success"]
    # The second block cannot see the first block's declaration
    assert results[1].error_type == "NameError"
    # A failing block does not stop the ones after it
    assert printed == [(1,), ("third",)]

    errors = [r for r in caplog.records if r.name == "flux" and r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].getMessage() == "Flux error: NameError: Undefined variable 'a'"


def test_run_document_without_blocks(runner_factory):
    assert run_document("<html></html>", runner_factory) == []


def test_load_local_document(tmp_path):
    page = tmp_path / "page.html"
    page.write_text(PAGE, encoding="utf-8")
    assert load_document(str(page)) == PAGE
    assert load_document(f"file://{page}") == PAGE


def test_load_missing_document(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_document(str(tmp_path / "missing.html"))


def test_load_remote_document():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text="<flux>print(1);</flux>")

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        html = load_document("https://example.test/page.html", client=client)
    assert html == "<flux>print(1);</flux>"
    assert seen == ["https://example.test/page.html"]


def test_load_remote_document_error_status():
    def handler(request):
        return httpx.Response(404, text="nope")

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.HTTPStatusError):
            load_document("http://example.test/missing", client=client)
