"""Built-in page templates (Jinja2) used when a section has no custom layout"""

from jinja2 import DictLoader, Environment, select_autoescape


DEFAULT_CSS = """
body { font-family: system-ui, sans-serif; max-width: 46rem; margin: 0 auto; padding: 1rem; line-height: 1.6; }
nav a { margin-right: 1rem; }
.content-img { max-width: 100%; height: auto; }
.content-figure { margin: 1.5rem 0; }
.content-caption, .content-credit { font-size: .875rem; color: #555; }
.embed-container { position: relative; width: 100%; }
.embed-container iframe { position: absolute; inset: 0; width: 100%; height: 100%; border: 0; }
.ratio-16-9 { padding-top: 56.25%; }
.ratio-4-3 { padding-top: 75%; }
.ratio-1-1 { padding-top: 100%; }
.ratio-9-16 { padding-top: 177.78%; }
.form-status { display: none; }
.blocks { margin-top: 2rem; border-top: 1px solid #ddd; }
.pagination a { margin-right: 1rem; }
"""

LAYOUT_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{% if content %}{{ content.heading }} | {% elif is_author %}{{ author.full_name or author.handle }} | {% endif %}{{ site.name or site.slug }}</title>
{% if content and content.meta and content.meta.description %}<meta name="description" content="{{ content.meta.description }}">
{% endif %}{% if not exclude_default_css %}<style>{{ default_css | safe }}</style>
{% endif %}{% if layout_css %}<style>{{ layout_css | safe }}</style>
{% endif %}</head>
<body>
<header>
<a href="{{ base_path }}">{{ site.name or site.slug }}</a>
<nav>{% for s in menu %}<a href="{{ base_path }}{{ s.path }}/">{{ s.name }}</a>{% endfor %}</nav>
</header>
<main>
{% if is_index %}{% include "index.html" %}{% elif is_author %}{% include "author.html" %}{% else %}{% include "content.html" %}{% endif %}
</main>
</body>
</html>
"""

CONTENT_HTML = """<article>
{% if content.header_image_url %}<img src="{{ content.header_image_url }}" alt="{{ content.header_image_alt }}" class="content-img">{% endif %}
<h1>{{ content.heading }}</h1>
{% if author %}<p class="byline"><a href="{{ author_url(author.handle) }}">{{ author.full_name or author.handle }}</a></p>{% elif content.author_username %}<p class="byline"><a href="{{ author_url(content.author_username) }}">{{ content.author_username }}</a></p>{% elif content.display_handle %}<p class="byline">{{ content.display_handle }}</p>{% endif %}
{% if content.published_at %}<time datetime="{{ content.published_at.isoformat() }}">{{ content.published_at.strftime('%Y-%m-%d') }}</time>{% endif %}
{{ body | safe }}
</article>
{% if blocks and blocks.has_content() %}<aside class="blocks">
{% if blocks.series_prev or blocks.series_next %}<nav class="series-nav">
{% if blocks.series_prev %}<a class="series-prev" href="{{ url_for(blocks.series_prev) }}">{{ blocks.series_prev.heading }}</a>{% endif %}
{% if blocks.series_next %}<a class="series-next" href="{{ url_for(blocks.series_next) }}">{{ blocks.series_next.heading }}</a>{% endif %}
</nav>{% endif %}
{% if blocks.series_index_backward %}<ul class="series-backward">{% for c in blocks.series_index_backward %}<li><a href="{{ url_for(c) }}">{{ c.heading }}</a></li>{% endfor %}</ul>{% endif %}
{% if blocks.series_index_forward %}<ul class="series-forward">{% for c in blocks.series_index_forward %}<li><a href="{{ url_for(c) }}">{{ c.heading }}</a></li>{% endfor %}</ul>{% endif %}
{% if blocks.related %}<ul class="related">{% for c in blocks.related %}<li><a href="{{ url_for(c) }}">{{ c.heading }}</a></li>{% endfor %}</ul>{% endif %}
</aside>{% endif %}
"""

INDEX_HTML = """{% if section and not section.is_root %}<h1>{{ section.name }}</h1>{% endif %}
<ul class="index">
{% for c in contents %}<li><a href="{{ url_for(c) }}">{{ c.heading }}</a>{% if c.summary %}<p>{{ c.summary }}</p>{% endif %}</li>
{% endfor %}</ul>
{% if total_pages > 1 %}<nav class="pagination">
{% if prev_url %}<a rel="prev" href="{{ prev_url }}">Previous</a>{% endif %}
<span>{{ current_page }} / {{ total_pages }}</span>
{% if next_url %}<a rel="next" href="{{ next_url }}">Next</a>{% endif %}
</nav>{% endif %}
"""

AUTHOR_HTML = """<section class="author">
{% if author.photo_path %}<img src="{{ base_path }}profiles/{{ author.photo_path }}" alt="{{ author.full_name or author.handle }}" class="author-photo">{% endif %}
<h1>{{ author.full_name or author.handle }}</h1>
{% if author.bio %}<p class="author-bio">{{ author.bio }}</p>{% endif %}
{% if author.social_links %}<ul class="author-links">{% for link in author.social_links if link.url %}<li><a href="{{ link.url }}" rel="me">{{ link.platform }}</a></li>{% endfor %}</ul>{% endif %}
</section>
<ul class="index">
{% for c in contents %}<li><a href="{{ url_for(c) }}">{{ c.heading }}</a>{% if c.summary %}<p>{{ c.summary }}</p>{% endif %}</li>
{% endfor %}</ul>
"""

TEMPLATES = {
    "layout.html":  LAYOUT_HTML,
    "content.html": CONTENT_HTML,
    "index.html":   INDEX_HTML,
    "author.html":  AUTHOR_HTML,
}


def make_environment() -> Environment:
    """Environment over the built-in templates; custom layouts compile against it and may include them."""
    return Environment(loader=DictLoader(TEMPLATES), autoescape=select_autoescape(default_for_string=True))
