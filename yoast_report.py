#!/usr/bin/env python3
"""
Yoast SEO report rows and CSV output.
Flattens one WordPress item plus the looked-up author, category, tag and
media data into a fixed set of report columns, adding SEO audit checks.
"""

import csv
import io
import pathlib
import re
from datetime import datetime, timezone

from wp_api import get_featured_image

TITLE_MAX = 60
TITLE_MIN = 30
DESC_MAX = 160
DESC_MIN = 70
SCORE_TOTAL = 7

REPORT_COLUMNS = [
    "Post Type",
    "ID",
    "Title",
    "Status",
    "Author Name",
    "Author ID",
    "Created Date (GMT)",
    "Last Updated Date (GMT)",
    "Link",
    "Categories",
    "Tags",
    "Comment Status",
    "Template",
    "Excerpt",
    "Featured Image URL",
    "Featured Image Alt Text",
    "Yoast Title",
    "Yoast Description",
    "Yoast Focus Keyphrase",
    "Yoast Word Count",
    "Yoast OG Title",
    "Yoast OG Description",
    "Yoast OG Image",
    "Yoast Twitter Title",
    "Yoast Twitter Description",
    "Yoast Twitter Image",
    "Yoast Canonical",
    "AUDIT: SEO Meta Score",
    "AUDIT: Is Title Too Long (>60)",
    "AUDIT: Is Title Too Short (<30)",
    "AUDIT: Is Meta Desc Missing",
    "AUDIT: Is Meta Desc Too Long (>160)",
    "AUDIT: Is Meta Desc Too Short (<70)",
    "AUDIT: Is OG Image Missing",
    "AUDIT: Is Featured Image Alt Missing",
    "AUDIT: Has Multiple H1 Tags",
]


def strip_html(html: str) -> str:
    if not html:
        return ""
    return re.sub(r"<[^>]+>", "", html).strip()


def yes_no(flag) -> str:
    return "Yes" if flag else "No"


def find_graph_node(graph, node_type: str) -> dict:
    """First node of the schema graph with the given @type, or {}."""
    for node in graph or []:
        if isinstance(node, dict) and node.get("@type") == node_type:
            return node
    return {}


def focus_keyphrase(article: dict) -> str:
    keywords = article.get("keywords")
    if isinstance(keywords, list):
        return ", ".join(str(k) for k in keywords)
    return keywords or ""


def has_multiple_h1(webpage: dict) -> bool:
    # substring count, not a markup parse
    return (webpage.get("headline") or "").count("</h1>") > 1


def resolve_names(ids, cache: dict) -> str:
    return ", ".join(cache.get(i) or f"ID:{i}" for i in ids or [])


def seo_score(item: dict, image: dict, description: str, keyphrase: str, og_image) -> int:
    """Count of the seven SEO completeness checks an item passes."""
    checks = [
        bool(item.get("categories")),
        bool(item.get("tags")),
        bool(image["url"]) and not image["url"].startswith("Error"),
        bool(image["alt"]),
        bool(description),
        bool(keyphrase),
        bool(og_image and og_image.get("url")),
    ]
    return sum(1 for c in checks if c)


def flatten_item(ctx, item: dict) -> dict:
    """Build one report row from a raw item tagged with its 'postType'."""
    yoast = item.get("yoast_head_json") or {}
    graph = (yoast.get("schema") or {}).get("@graph") or []
    article = find_graph_node(graph, "Article")
    webpage = find_graph_node(graph, "WebPage")

    keyphrase = focus_keyphrase(article)
    og_images = yoast.get("og_image") or []
    og_image = og_images[0] if og_images else None
    title = yoast.get("title") or ""
    description = yoast.get("description") or ""

    image = get_featured_image(ctx, item.get("featured_media"))
    score = seo_score(item, image, description, keyphrase, og_image)

    author = item.get("author")
    return {
        "Post Type": item.get("postType"),
        "ID": item.get("id"),
        "Title": (item.get("title") or {}).get("rendered") or "No Title",
        "Status": item.get("status"),
        "Author Name": ctx.authors.get(author) or f"ID:{author}",
        "Author ID": author,
        "Created Date (GMT)": item.get("date_gmt"),
        "Last Updated Date (GMT)": item.get("modified_gmt"),
        "Link": item.get("link"),
        "Categories": resolve_names(item.get("categories"), ctx.categories),
        "Tags": resolve_names(item.get("tags"), ctx.tags),
        "Comment Status": item.get("comment_status"),
        "Template": item.get("template"),
        "Excerpt": strip_html((item.get("excerpt") or {}).get("rendered")),
        "Featured Image URL": image["url"],
        "Featured Image Alt Text": image["alt"],
        "Yoast Title": title,
        "Yoast Description": description,
        "Yoast Focus Keyphrase": keyphrase,
        "Yoast Word Count": webpage.get("wordCount") or "",
        "Yoast OG Title": yoast.get("og_title"),
        "Yoast OG Description": yoast.get("og_description"),
        "Yoast OG Image": og_image.get("url") if og_image else "",
        "Yoast Twitter Title": yoast.get("twitter_title"),
        "Yoast Twitter Description": yoast.get("twitter_description"),
        "Yoast Twitter Image": yoast.get("twitter_image"),
        "Yoast Canonical": yoast.get("canonical"),
        # audit columns
        "AUDIT: SEO Meta Score": f"{score} / {SCORE_TOTAL}",
        "AUDIT: Is Title Too Long (>60)": yes_no(len(title) > TITLE_MAX),
        "AUDIT: Is Title Too Short (<30)": yes_no(len(title) < TITLE_MIN),
        "AUDIT: Is Meta Desc Missing": yes_no(not description),
        "AUDIT: Is Meta Desc Too Long (>160)": yes_no(len(description) > DESC_MAX),
        "AUDIT: Is Meta Desc Too Short (<70)": yes_no(0 < len(description) < DESC_MIN),
        "AUDIT: Is OG Image Missing": yes_no(not og_image),
        "AUDIT: Is Featured Image Alt Missing": yes_no(image["url"] and not image["alt"]),
        "AUDIT: Has Multiple H1 Tags": yes_no(has_multiple_h1(webpage)),
    }


def rows_to_csv(rows) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=REPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()


def report_timestamp(now=None) -> str:
    """UTC ISO-8601 instant with ':' and '.' made filename safe."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return re.sub(r"[:.]", "-", iso)


def report_path(domain: str, now=None, out_dir="reports") -> pathlib.Path:
    return pathlib.Path(out_dir) / domain / f"{report_timestamp(now)}-yoast-report.csv"


def save_report(domain: str, rows, out_dir="reports", now=None) -> pathlib.Path:
    """Serialize all rows and write the CSV file in one go."""
    text = rows_to_csv(rows)
    path = report_path(domain, now=now, out_dir=out_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        f.write(text)
    return path
