"""Safe html for untrusted comment text"""

from markdown_it import MarkdownIt


TOP_LEVEL = 3
MAX_LEVEL = 6

_md = MarkdownIt("commonmark", {"html": False})


def _lift_headings(tokens: list) -> None:
    """Shift heading levels so the shallowest one becomes h3, keeping relative nesting."""
    levels = [int(t.tag[1:]) for t in tokens if t.type == "heading_open"]
    if not levels:
        return
    diff = TOP_LEVEL - min(levels)
    for token in tokens:
        if token.type in ("heading_open", "heading_close"):
            token.tag = f"h{min(int(token.tag[1:]) + diff, MAX_LEVEL)}"


def render_comment(text: str) -> str:
    """Render comment markdown; raw html in the input comes out as escaped text."""
    env: dict = {}
    tokens = _md.parse(text, env)
    _lift_headings(tokens)
    return _md.renderer.render(tokens, _md.options, env).rstrip()
