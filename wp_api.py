#!/usr/bin/env python3
"""
WordPress REST API access for the Yoast report
- Authenticated session bound to https://<domain>/wp-json/wp/v2
- Page-by-page fetching driven by the X-WP-TotalPages header
- Reference caches for users, categories, tags and featured media
- Post type discovery and per-type item fetching

Every function takes an ExtractionContext so the caches live exactly as long
as one extraction run.
"""

import base64
from collections import namedtuple

import requests
from requests.exceptions import HTTPError

UA = "WordPressDataExtractor/1.6"
API_PATH = "/wp-json/wp/v2"

REFERENCE_PAGE_SIZE = 100
ITEM_PAGE_SIZE = 50

ITEM_FIELDS = [
    "id", "title", "author", "date_gmt", "modified_gmt", "link", "status",
    "excerpt", "comment_status", "template", "categories", "tags",
    "featured_media", "yoast_head_json",
]

DEFAULT_POST_TYPES = ["posts", "pages"]

MEDIA_ERROR = "Error fetching image"

Credentials = namedtuple("Credentials", ["domain", "username", "secret"])


def auth_header(username: str, secret: str) -> str:
    token = base64.b64encode(f"{username}:{secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def build_session(credentials: Credentials) -> requests.Session:
    """Create a session that sends the Basic credential on every request."""
    s = requests.Session()
    s.headers.update({
        "Authorization": auth_header(credentials.username, credentials.secret),
        "User-Agent": UA,
    })
    return s


class ExtractionContext:
    """Authenticated session plus the lookup caches for one run."""

    def __init__(self, credentials: Credentials, session=None):
        self.credentials = credentials
        self.domain = credentials.domain
        self.base_url = f"https://{credentials.domain}{API_PATH}"
        self.session = session if session is not None else build_session(credentials)

        self.authors = {}
        self.categories = {}
        self.tags = {}
        self.media = {}


def api_get(ctx: ExtractionContext, endpoint: str, params=None) -> requests.Response:
    r = ctx.session.get(ctx.base_url + endpoint, params=params or {})
    r.raise_for_status()
    return r


def total_pages_from(headers) -> int:
    try:
        return int(headers.get("X-WP-TotalPages")) or 1
    except (TypeError, ValueError):
        return 1


def fetch_all_pages(ctx: ExtractionContext, endpoint: str, per_page=REFERENCE_PAGE_SIZE, params=None):
    """Yield (page, total_pages, response) for every page of an endpoint.

    The page count is read once from the first response; pages are requested
    strictly one after another.
    """
    page = 1
    total_pages = 1
    while page <= total_pages:
        query = dict(params or {})
        query.update({"per_page": per_page, "page": page})
        r = api_get(ctx, endpoint, params=query)
        if page == 1:
            total_pages = total_pages_from(r.headers)
        yield page, total_pages, r
        page += 1


def cache_reference(ctx: ExtractionContext, endpoint: str, cache: dict, label: str) -> dict:
    """Fill ``cache`` with id -> name for every item of ``endpoint``.

    A failure part way through leaves whatever was cached so far; report rows
    fall back to ID placeholders for anything missing.
    """
    print(f"-- Fetching all {label} ...")
    try:
        for _page, _total, r in fetch_all_pages(ctx, endpoint):
            for item in r.json():
                cache[item.get("id")] = item.get("name")
        print(f"   ... cached {len(cache)} {label}")
    except Exception as e:
        print(f"   Warning: could not fetch {label}; this data may be missing from the report ({e})")
    return cache


def get_featured_image(ctx: ExtractionContext, media_id) -> dict:
    """Return {'url', 'alt'} for a media id, fetching it at most once per run."""
    if not media_id:
        return {"url": "", "alt": ""}
    if media_id in ctx.media:
        return ctx.media[media_id]

    try:
        r = api_get(ctx, f"/media/{media_id}", params={"_fields": "source_url,alt_text"})
        data = r.json()
        image = {
            "url": data.get("source_url") or "",
            "alt": data.get("alt_text") or "",
        }
    except Exception as e:
        print(f"   Warning: could not fetch media ID {media_id} ({e})")
        # cached so the lookup is never repeated
        image = {"url": MEDIA_ERROR, "alt": MEDIA_ERROR}

    ctx.media[media_id] = image
    return image


def discover_post_types(ctx: ExtractionContext) -> list:
    """Return the REST bases of all viewable post types.

    Raises requests.RequestException if /types cannot be fetched.
    """
    print("-- Discovering available post types ...")
    data = api_get(ctx, "/types").json()
    types = [
        v.get("rest_base") for v in data.values()
        if v.get("viewable") and v.get("rest_base")
    ]
    if types:
        print(f"   ... found post types: {', '.join(types)}")
        return types

    print('   Warning: could not discover post types, defaulting to "posts" and "pages"')
    return list(DEFAULT_POST_TYPES)


def fetch_items(ctx: ExtractionContext, post_type: str, per_page=ITEM_PAGE_SIZE) -> list:
    """Fetch every item of one post type with the report's field projection.

    Returns an empty list when the type has no endpoint (404) or any request
    fails; one broken type never stops the run.
    """
    print(f"\n-- Fetching post type '{post_type}' ...")
    params = {"context": "view", "_fields": ",".join(ITEM_FIELDS)}
    items = []
    try:
        for page, total_pages, r in fetch_all_pages(ctx, f"/{post_type}", per_page=per_page, params=params):
            if page == 1:
                total = r.headers.get("X-WP-Total", "?")
                print(f"   ... found {total} item(s) across {total_pages} page(s)")
            batch = r.json()
            if batch:
                items.extend(batch)
                print(f"   ... fetched page {page}/{total_pages} ({len(items)} items so far)")
    except HTTPError as e:
        if e.response is not None and e.response.status_code == 404:
            print(f"   ... no items found for post type '{post_type}', skipping")
        else:
            print(f"   ... error fetching '{post_type}': {e}. Skipping this type.")
        return []
    except Exception as e:
        print(f"   ... error fetching '{post_type}': {e}. Skipping this type.")
        return []
    return items
