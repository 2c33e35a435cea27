"""Author directives: the image destination grammar and code fence handlers

Image destinations have the form `path [{classes attr="val" ...}] caption`,
e.g. `![Sunset][2023/sunset.jpg {gallery front} Evening at the lake]`.

Code fence info either selects a directive with a leading `!`
(`!leaflet`, `!qr <caption>`, `!embed`) or names a highlighting language.
"""

import base64
import io
import re
from dataclasses import dataclass, field

import qrcode
from qrcode.exceptions import DataOverflowError
from markdown_it.common.utils import escapeHtml

from mdblog.clients.oembed import VideoInfo, video_id
from mdblog.core.errors import AuthoringError
from mdblog.core.render.context import RenderContext
from mdblog.core.render.highlight import highlight


IMAGE_DEST_RE = re.compile(
    r'^([A-Za-z0-9/._-]*)\s*(\{([\s\w-]*)((?:\s[\w-]+="[^"]*")*)\s*\})?\s*([^{]*)$'
)
ATTR_RE = re.compile(r'([\w-]+)="([^"]*)"')
IFRAME_RE = re.compile(r'<iframe\b([^>]*)>', re.IGNORECASE)
ALLOWED_IFRAME_SRC = ("https://www.youtube.com/embed/", "https://www.youtube-nocookie.com/embed/")
KEPT_IFRAME_ATTRS = ("width", "height", "title")
THUMBNAIL_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


def escape_attr(text: str) -> str:
    """Escape text for a single quoted attribute value."""
    return escapeHtml(text).replace("'", "&#39;")


COVER = "cover"
MAP_SIGNATURE = "function initmap()"

LEAFLET_OPEN = """
<div id="llmap">
<p>There should be a map here.</p>
</div>
<script type="text/javascript">
  function initmap() {
  var map = L.map('llmap', {scrollWheelZoom: false})
  .addLayer(L.tileLayer('//{s}.tile.openstreetmap.org/{z}/{x}/{y}.png', {
  attribution: '&#xA9; <a href="http://osm.org/copyright">OpenStreetMap contributors</a>',
  }));
"""
LEAFLET_CLOSE = "}\n</script>\n"


@dataclass(frozen=True)
class Directive:
    """A parsed image destination."""
    path: str
    classes: tuple[str, ...] = ()
    attributes: dict[str, str] = field(default_factory=dict)
    caption: str = ""

    def has(self, cls: str) -> bool:
        return cls in self.classes

    @property
    def kind(self) -> str:
        if self.path == COVER:
            return "cover"
        for kind in ("gallery", "scaled"):
            if self.has(kind):
                return kind
        return "normal"

    def attrs_html(self) -> str:
        return "".join(f' {k}="{escapeHtml(v)}"' for k, v in self.attributes.items())


def parse_image_dest(dest: str) -> Directive:
    m = IMAGE_DEST_RE.match(dest.strip())
    if not m:
        raise AuthoringError(f"Bad image ref: {dest!r}")
    path, _, classes, attrs, caption = m.groups()
    return Directive(
        path=path,
        classes=tuple(dict.fromkeys((classes or "").split())),
        attributes=dict(ATTR_RE.findall(attrs or "")),
        caption=caption.strip(),
    )


# --- code blocks ---

def render_code_block(info: str, text: str, ctx: RenderContext) -> str:
    """Html for a code block with fence info (possibly empty) and its literal text."""
    if not info:
        return f"<pre>{escapeHtml(text)}</pre>\n"
    if info.startswith("!"):
        name, _, args = info[1:].partition(" ")
        handler = DIRECTIVES.get(name)
        if handler is None:
            raise AuthoringError(f"Magic for !{name} not implemented")
        return handler(args.strip(), text, ctx)
    lang = info.split()[0]
    code = highlight(text, lang)
    return f'<pre data-lang="{escapeHtml(lang)}">{code if code is not None else escapeHtml(text)}</pre>\n'


def leaflet_block(args: str, text: str, ctx: RenderContext) -> str:
    """The block is trusted javascript run inside the map initializer."""
    return LEAFLET_OPEN + text + LEAFLET_CLOSE


def qr_block(caption: str, text: str, ctx: RenderContext) -> str:
    """A 1-bit png QR code for the block text, embedded as a data url."""
    data = text.strip()
    qr = qrcode.QRCode(border=2, box_size=4)
    qr.add_data(data)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        raise AuthoringError(f"Cannot encode !qr block of {len(data)} characters: {e}") from e
    img = qr.make_image()
    buf = io.BytesIO()
    img.save(buf)
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    size = img.pixel_size
    figcaption = f"<figcaption>{escapeHtml(caption)}</figcaption>" if caption else ""
    return (
        f"<figure class='qr'><img src='data:image/png;base64,{encoded}' "
        f"alt='{escape_attr(data)}' width='{size}' height='{size}'/>{figcaption}</figure>\n"
    )


def _iframe(info: VideoInfo) -> str:
    """A minimal iframe rebuilt from the oembed markup; only known attributes survive."""
    m = IFRAME_RE.search(info.html)
    attrs = dict(ATTR_RE.findall(m.group(1))) if m else {}
    src = attrs.get("src", "")
    if not src.startswith(ALLOWED_IFRAME_SRC):
        src = f"{ALLOWED_IFRAME_SRC[1]}{info.video_id}"
    sep = "&" if "?" in src else "?"
    kept = "".join(f' {k}="{escapeHtml(attrs[k])}"' for k in KEPT_IFRAME_ATTRS if k in attrs)
    return (
        f'<iframe src="{escapeHtml(src + sep + "autoplay=1")}"{kept} '
        f'allow="autoplay; encrypted-media; picture-in-picture" allowfullscreen></iframe>'
    )


def embed_block(args: str, text: str, ctx: RenderContext) -> str:
    """Click-to-activate video placeholder; the iframe is only inserted after user interaction."""
    url = text.strip()
    vid = video_id(url)
    if vid is None:
        raise AuthoringError(f"Unsupported embed {url!r}; only short video urls are handled")
    embeds = ctx.require_embeds()
    info = embeds.fetch(url)
    thumb = embeds.thumbnail(info)
    ext = THUMBNAIL_EXTENSIONS.get(thumb.mime, "jpg")
    thumb_url = ctx.require_assets().store(ctx.page.year, f"yt-{vid}.{ext}", thumb.mime, thumb.content)
    title = escape_attr(info.title)
    size = f" width='{info.width}' height='{info.height}'" if info.width and info.height else ""
    return (
        f"<figure class='embed' data-embed=\"{escapeHtml(_iframe(info))}\">"
        f"<img src='{thumb_url}' alt='{title}'{size}/>"
        f"<button class='embed-play' type='button'>▶</button>"
        f"<figcaption>{title}</figcaption></figure>\n"
    )


DIRECTIVES = {
    "leaflet": leaflet_block,
    "qr": qr_block,
    "embed": embed_block,
}

