from __future__ import annotations

import json
import stat

import pytest
from bs4 import BeautifulSoup

from kindle_pult.errors import ExtractionError
from kindle_pult.extractor import (
    ReadabiliPyExtractor,
    ReadabiliPyParser,
    ReadabilityExtractor,
    find_byline,
    load_article,
    plain_content_from_html,
)
from kindle_pult.models import Article

PARAGRAPH = (
    "Widgets are small mechanical devices that have shaped the way factories "
    "operate for more than a century, and their history is full of surprises. "
)

ARTICLE_HTML = f"""<!DOCTYPE html>
<html>
<head>
  <title>Understanding Widgets</title>
  <meta name="author" content="Ada Lovelace">
  <meta property="article:published_time" content="2024-05-01T10:00:00Z">
</head>
<body>
  <nav><a href="/">Home</a> <a href="/about">About</a></nav>
  <article>
    <h1>Understanding Widgets</h1>
    <p>{PARAGRAPH * 4}</p>
    <p>{PARAGRAPH * 3} The <a href="/gears">gear train</a> is the key part.</p>
    <p>{PARAGRAPH * 4}</p>
  </article>
  <footer>Copyright</footer>
</body>
</html>
"""


def test_readability_extractor_writes_article_record(tmp_path):
    html_path = tmp_path / "page.html"
    html_path.write_text(ARTICLE_HTML, encoding="utf-8")
    output_path = tmp_path / "article.json"

    ReadabilityExtractor().extract(html_path, output_path)

    record = json.loads(output_path.read_text(encoding="utf-8"))
    assert set(record) == {"title", "byline", "date", "content", "plain_content"}
    assert record["title"] == "Understanding Widgets"
    assert record["byline"] == "Ada Lovelace"
    assert record["date"] == "2024-05-01T10:00:00Z"
    assert "gear train" in record["content"]
    assert "gear train" in record["plain_content"]
    assert "<a" not in record["plain_content"]


def test_readability_extractor_missing_input(tmp_path):
    with pytest.raises(ExtractionError):
        ReadabilityExtractor().extract(tmp_path / "nope.html", tmp_path / "out.json")


def test_plain_content_keeps_blocks_and_drops_inline_markup():
    html = '<div class="x"><p id="a">Hello <b>bold</b> <a href="#">link</a></p><img src="a.png"></div>'
    assert plain_content_from_html(html) == "<div><p>Hello bold link</p></div>"


def test_readabilipy_command_line():
    mozilla = ReadabiliPyExtractor()
    python = ReadabiliPyExtractor(ReadabiliPyParser.PYTHON)

    assert mozilla.command("in.html", "out.json") == [
        "readabilipy", "-i", "in.html", "-o", "out.json"
    ]
    assert python.command("in.html", "out.json")[-1] == "-p"


def _write_script(path, body):
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


def test_readabilipy_runs_external_command(tmp_path):
    script = _write_script(
        tmp_path / "fake-readabilipy",
        'while [ $# -gt 0 ]; do\n'
        '  if [ "$1" = "-o" ]; then out="$2"; fi\n'
        '  shift\n'
        'done\n'
        'printf \'{"title": "T", "byline": "B", "content": "<p>x</p>", "plain_text": []}\' > "$out"\n',
    )
    html_path = tmp_path / "page.html"
    html_path.write_text("<html></html>", encoding="utf-8")
    output_path = tmp_path / "article.json"

    ReadabiliPyExtractor(executable=script).extract(html_path, output_path)

    assert load_article(output_path) == Article(title="T", byline="B", content="<p>x</p>")


def test_readabilipy_failure_is_extraction_error(tmp_path):
    script = _write_script(tmp_path / "broken", 'echo "boom" >&2\nexit 3\n')

    with pytest.raises(ExtractionError, match="boom"):
        ReadabiliPyExtractor(executable=script).extract(tmp_path / "a", tmp_path / "b")


def test_readabilipy_missing_executable(tmp_path):
    with pytest.raises(ExtractionError):
        ReadabiliPyExtractor(executable="definitely-not-installed-xyz").extract(
            tmp_path / "a", tmp_path / "b"
        )


def test_load_article_maps_nulls_and_ignores_unknown_keys(tmp_path):
    path = tmp_path / "article.json"
    path.write_text(
        json.dumps({"title": "T", "byline": None, "content": "<p/>", "plain_text": [{"text": "x"}]}),
        encoding="utf-8",
    )

    article = load_article(path)

    assert article.title == "T"
    assert article.byline is None
    assert article.date is None
    assert article.plain_content is None


@pytest.mark.parametrize("payload", ["not json at all", "[1, 2, 3]", '{"title": 42}'])
def test_load_article_rejects_bad_records(tmp_path, payload):
    path = tmp_path / "article.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ExtractionError):
        load_article(path)


def test_load_article_missing_output(tmp_path):
    with pytest.raises(ExtractionError):
        load_article(tmp_path / "article.json")


@pytest.mark.parametrize(
    "markup",
    [
        '<head><meta name="author" content="Ada Lovelace"></head>',
        '<p>By <a rel="author" href="/ada">Ada Lovelace</a></p>',
        '<div itemprop="author" itemscope><span itemprop="name">Ada Lovelace</span></div>',
        '<meta itemprop="author" content="Ada Lovelace">',
        '<p class="post-byline">Ada Lovelace</p>',
        '<span class="Author-Name">Ada  Lovelace</span>',
        '<div id="article-author">Ada Lovelace</div>',
    ],
)
def test_byline_sources(markup):
    soup = BeautifulSoup(f"<html>{markup}<p>Body text.</p></html>", "html.parser")
    assert find_byline(soup) == "Ada Lovelace"


def test_byline_skips_long_author_blocks():
    bio = "Ada writes about engines and mathematics. " * 5
    soup = BeautifulSoup(
        f'<div class="author-bio">{bio}</div><span class="byline">Ada Lovelace</span>',
        "html.parser",
    )
    assert find_byline(soup) == "Ada Lovelace"


def test_byline_absent():
    assert find_byline(BeautifulSoup("<p>Anonymous text.</p>", "html.parser")) is None


def test_readability_extractor_reads_markup_byline(tmp_path):
    html_path = tmp_path / "page.html"
    html_path.write_text(
        ARTICLE_HTML.replace('<meta name="author" content="Ada Lovelace">', "").replace(
            "<article>", '<article><p class="byline">By Charles Babbage</p>'
        ),
        encoding="utf-8",
    )
    output_path = tmp_path / "article.json"

    ReadabilityExtractor().extract(html_path, output_path)

    assert load_article(output_path).byline == "By Charles Babbage"
