#!/usr/bin/env python3
"""
WordPress Yoast SEO report extractor
- Caches users, categories and tags from the REST API
- Discovers viewable post types and fetches every item of each
- Flattens items plus Yoast head data into one CSV row each, with SEO audit columns
- Writes ./reports/<domain>/<timestamp>-yoast-report.csv

Usage:
  python wp_yoast_report.py [--domain example.com] [--username admin] [--out reports]

Notes:
- Uses a WordPress Application Password (Users > Profile > Application Passwords).
- The password is read from WP_APP_PASSWORD when set, otherwise prompted for.
- Any value not given on the command line is prompted for interactively.
"""

import argparse
import getpass
import os
import sys

from wp_api import (
    Credentials,
    ExtractionContext,
    cache_reference,
    discover_post_types,
    fetch_items,
)
from yoast_report import flatten_item, save_report


def prompt_required(label: str, name: str, secret=False) -> str:
    """Ask until a non-empty answer is given."""
    while True:
        value = getpass.getpass(f"{label}: ") if secret else input(f"{label}: ").strip()
        if value:
            return value
        print(f"{name} cannot be empty.")


def collect_credentials(domain=None, username=None, secret=None) -> Credentials:
    domain = domain or prompt_required("WordPress site domain (e.g. yoursite.com)", "Domain")
    username = username or prompt_required("WordPress username", "Username")
    secret = secret or prompt_required("Application Password", "Application Password", secret=True)
    return Credentials(domain.strip(), username.strip(), secret)


def run_report(credentials: Credentials, out_dir="reports", session=None):
    """
    Extract every viewable item from the site and write the CSV report.
    Can be called from CLI or GUI.

    Args:
        credentials (Credentials): domain, username and application password
        out_dir (str): Base directory for reports (default: reports)
        session (requests.Session): Optional pre-built session

    Returns:
        tuple: (success: bool, report_path: str or None, message: str)
    """
    try:
        ctx = ExtractionContext(credentials, session=session)
        print(f"==> Connecting to: {ctx.base_url}")

        cache_reference(ctx, "/users", ctx.authors, "users")
        cache_reference(ctx, "/categories", ctx.categories, "categories")
        cache_reference(ctx, "/tags", ctx.tags, "tags")

        try:
            post_types = discover_post_types(ctx)
        except Exception as e:
            return False, None, f"Fatal: could not fetch post types endpoint :: {e}"

        items = []
        for post_type in post_types:
            for item in fetch_items(ctx, post_type):
                item["postType"] = post_type
                items.append(item)

        if not items:
            print("\n==> No data was extracted. Report will not be generated.")
            return True, None, "No data was extracted"

        print(f"\n==> Processing {len(items)} item(s) for the CSV report ...")
        rows = [flatten_item(ctx, item) for item in items]

        try:
            path = save_report(ctx.domain, rows, out_dir=out_dir)
        except OSError as e:
            print(f"\n[!] Error saving CSV report to file: {e}", file=sys.stderr)
            return True, None, f"Report could not be saved: {e}"

        print(f"\n==> Done. Report saved to: {path}")
        return True, str(path), f"Report with {len(rows)} row(s) saved"

    except Exception as e:
        return False, None, f"An unexpected error occurred: {e}"


def main(argv=None):
    """CLI entry point that collects credentials and calls the core function."""
    ap = argparse.ArgumentParser(description="Export WordPress content and Yoast SEO fields to a CSV audit report")
    ap.add_argument("--domain", help="Site domain, e.g. example.com (prompted if omitted)")
    ap.add_argument("--username", help="WordPress username (prompted if omitted)")
    ap.add_argument("--out", default="reports", help="Report base directory (default: reports)")
    args = ap.parse_args(argv)

    print("--- WordPress Data Extractor ---")
    try:
        credentials = collect_credentials(args.domain, args.username, os.environ.get("WP_APP_PASSWORD"))
    except (KeyboardInterrupt, EOFError):
        print("\nAborted.", file=sys.stderr)
        return 1

    success, _path, message = run_report(credentials, out_dir=args.out)
    if not success:
        print(f"[!] {message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
