import pytest

from backend.noteify.services.markdown import CODE_CLASS, render_markdown


def test_empty_text() -> None:
    assert render_markdown("") == ""


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("**bold**", "<strong>bold</strong>"),
        ("_soft_", "<em>soft</em>"),
        ("`x = 1`", f'<code class="{CODE_CLASS}">x = 1</code>'),
        ("# Title", "<h2>Title</h2>"),
        ("## Section", "<h3>Section</h3>"),
        ("- item", "<ul><li>item</li></ul>"),
    ],
)
def test_single_constructs(source: str, expected: str) -> None:
    assert render_markdown(source) == expected


def test_consecutive_list_items_share_one_list() -> None:
    assert render_markdown("- a\n- b\n- c") == "<ul><li>a</li><li>b</li><li>c</li></ul>"


def test_newlines_become_breaks_except_around_headings() -> None:
    html = render_markdown("intro\n## Part\nbody\nmore")

    assert html == "intro<h3>Part</h3>body<br />more"


def test_inline_inside_list_and_heading() -> None:
    html = render_markdown("# **Big** plan\n- _first_ step")

    assert html == "<h2><strong>Big</strong> plan</h2><ul><li><em>first</em> step</li></ul>"


def test_html_is_escaped() -> None:
    html = render_markdown('<script>alert("x")</script> a > b')

    assert "<script>" not in html
    assert html.startswith("&lt;script&gt;")
    assert "a &gt; b" in html


def test_unclosed_markers_are_left_alone() -> None:
    assert render_markdown("**half") == "**half"
    assert render_markdown("a*b") == "a*b"


def test_markers_do_not_span_lines() -> None:
    assert render_markdown("**a\nb**") == "**a<br />b**"


@pytest.mark.parametrize(
    "source",
    [
        "plain text",
        "# Title\nintro **bold** and _it_ with `code`\n\n## Sub\n- one\n- two\ntrailing",
        "**a\nb**",
        "- a**\n- **b",
        "## a**\n**b",
        "x\n\n\n## heading\n\n\ny",
        "<b>not allowed</b> & <strong>kept</strong>",
        "snake_case_name and __dunder__",
        "`a_b_c` then _x_",
    ],
)
def test_rendering_is_idempotent(source: str) -> None:
    once = render_markdown(source)

    assert render_markdown(once) == once
