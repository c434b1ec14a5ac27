"""Open Graph metadata and crawler-facing HTML.

Social platforms do not execute client-side rendering, so bots get a
server-rendered document carrying Open Graph, Twitter Card and JSON-LD
markup instead of the JSON payload regular clients receive.
"""

from jinja2 import DictLoader, Environment, TemplateError

from havaasa.constants.link_preview import (
    DESCRIPTION_PREFIX_CHARS,
    ELLIPSIS,
    FALLBACK_IMAGE_PATH,
    OG_IMAGE_HEIGHT,
    OG_IMAGE_WIDTH,
    OG_TYPE,
)
from havaasa.exceptions import RenderError
from havaasa.schemas.article import ArticleRecord, OpenGraphMetadata

ARTICLE_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ meta.title }}</title>

    <!-- Primary Meta Tags -->
    <meta name="title" content="{{ meta.title }}">
    <meta name="description" content="{{ meta.description }}">

    <!-- Open Graph / Facebook -->
    <meta property="og:type" content="{{ meta.type }}">
    <meta property="og:url" content="{{ meta.url }}">
    <meta property="og:title" content="{{ meta.title }}">
    <meta property="og:description" content="{{ meta.description }}">
    <meta property="og:image" content="{{ meta.image }}">
    <meta property="og:site_name" content="{{ meta.site_name }}">
    <meta property="og:image:width" content="{{ image_width }}">
    <meta property="og:image:height" content="{{ image_height }}">
    <meta property="og:locale" content="{{ meta.locale }}">

    <!-- Twitter -->
    <meta name="twitter:card" content="summary_large_image">
    <meta name="twitter:url" content="{{ meta.url }}">
    <meta name="twitter:title" content="{{ meta.title }}">
    <meta name="twitter:description" content="{{ meta.description }}">
    <meta name="twitter:image" content="{{ meta.image }}">

    <!-- Structured Data -->
    <script type="application/ld+json">{{ structured_data | tojson }}</script>
</head>
<body>
    <h1>{{ meta.title }}</h1>
    <p>{{ meta.description }}</p>
    <img src="{{ meta.image }}" alt="{{ meta.title }}">
    <p><a href="{{ meta.url }}">Read full article</a></p>
</body>
</html>
"""

NOT_FOUND_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{{ heading }} | {{ site_name }}</title>
    <meta name="robots" content="noindex">
</head>
<body>
    <h1>{{ heading }}</h1>
    <p><a href="{{ home_url }}">{{ site_name }}</a></p>
</body>
</html>
"""

_templates = Environment(
    loader=DictLoader({"article.html": ARTICLE_TEMPLATE, "not_found.html": NOT_FOUND_TEMPLATE}),
    autoescape=True,
)


def https_base(base_url: str) -> str:
    """Base URL forced to HTTPS, without a trailing slash."""
    base = base_url.rstrip("/")
    if base.startswith("http://"):
        base = "https://" + base[len("http://"):]
    return base


def absolute_image_url(image: str | None, base_url: str) -> str:
    """Resolve a stored image reference to an absolute HTTPS URL."""
    base = https_base(base_url)
    image = (image or "").strip()
    if not image:
        return base + FALLBACK_IMAGE_PATH
    scheme = image[:8].lower()
    if scheme.startswith("http://"):
        return "https://" + image[len("http://"):]
    if scheme.startswith("https://"):
        return "https://" + image[len("https://"):]
    if image.startswith("//"):
        return "https:" + image
    return f"{base}/{image.lstrip('/')}"


def article_description(article: ArticleRecord) -> str:
    if article.excerpt and article.excerpt.strip():
        return article.excerpt.strip()
    if article.content:
        return article.content[:DESCRIPTION_PREFIX_CHARS] + ELLIPSIS
    return ""


def build_metadata(
    article: ArticleRecord,
    base_url: str,
    *,
    site_name: str,
    locale: str,
) -> OpenGraphMetadata:
    """Derive fully-populated link-preview metadata from an article."""
    return OpenGraphMetadata(
        title=article.title or "",
        description=article_description(article),
        image=absolute_image_url(article.image_url, base_url),
        url=f"{base_url.rstrip('/')}/article/{article.id}",
        type=OG_TYPE,
        site_name=site_name,
        locale=locale,
        category=article.category_name or "",
    )


def structured_data(meta: OpenGraphMetadata) -> dict:
    """schema.org Article mirroring the Open Graph fields."""
    data = {
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": meta.title,
        "description": meta.description,
        "image": meta.image,
        "url": meta.url,
        "publisher": {"@type": "Organization", "name": meta.site_name},
    }
    if meta.category:
        data["articleSection"] = meta.category
    return data


def render_article_html(meta: OpenGraphMetadata) -> str:
    """Render the crawler-facing document for one article."""
    try:
        return _templates.get_template("article.html").render(
            meta=meta,
            image_width=OG_IMAGE_WIDTH,
            image_height=OG_IMAGE_HEIGHT,
            structured_data=structured_data(meta),
        )
    except TemplateError as e:
        raise RenderError("Failed to render article preview", details=str(e)) from e


def render_not_found_html(site_name: str, base_url: str, heading: str = "Article not found") -> str:
    """Minimal valid HTML page for crawler-facing 404s and errors."""
    try:
        return _templates.get_template("not_found.html").render(
            heading=heading,
            site_name=site_name,
            home_url=https_base(base_url) + "/",
        )
    except TemplateError as e:
        raise RenderError("Failed to render error page", details=str(e)) from e
