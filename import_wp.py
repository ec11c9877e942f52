"""
Import published posts from a WordPress WXR export into the posts collection.

Usage:
    python import_wp.py xxxxx.WordPress.xxxx-xx-xx.xml [--dry-run]
"""

import argparse
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
import xml.etree.ElementTree as ET

import config
import store


NS = {
    "content": "http://purl.org/rss/1.0/modules/content/",
    "wp": "http://wordpress.org/export/1.2/",
}

DEFAULT_CATEGORY = "Learning"
IMG_SRC = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)


def to_datetime(date_str: str) -> datetime:
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M:%S%z"):
        try:
            return datetime.strptime(date_str, fmt).replace(tzinfo=None)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(date_str).replace(tzinfo=None)
    except ValueError:
        return store.utc_now()


def first_image(html: str) -> Optional[str]:
    match = IMG_SRC.search(html or "")
    return match.group(1) if match else None


def parse_posts(xml_path: Path) -> List[Dict]:
    tree = ET.parse(xml_path)
    channel = tree.getroot().find("channel")
    posts: List[Dict] = []

    for item in channel.findall("item"):
        if item.findtext("wp:post_type", default="", namespaces=NS) != "post":
            continue
        if item.findtext("wp:status", default="publish", namespaces=NS) != "publish":
            continue

        content_html = item.findtext("content:encoded", default="", namespaces=NS) or ""
        # WXR stores the post date in the blog's timezone; use the GMT one when present.
        post_date = item.findtext(
            "wp:post_date_gmt", default="", namespaces=NS
        ) or item.findtext("wp:post_date", default="", namespaces=NS)

        categories = [
            (cat.text or "").strip()
            for cat in item.findall("category")
            if cat.get("domain") == "category" and (cat.text or "").strip()
        ]

        posts.append(
            {
                "title": (item.findtext("title", default="") or "").strip(),
                "content": content_html,
                "imageUrl": first_image(content_html),
                "category": categories[0] if categories else DEFAULT_CATEGORY,
                "createdAt": to_datetime(post_date) if post_date else store.utc_now(),
            }
        )

    posts.sort(key=lambda p: p["createdAt"], reverse=True)
    return posts


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import WordPress export into MongoDB")
    parser.add_argument("xml_path", help="Path to the WXR xml file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list the posts that would be imported",
    )
    args = parser.parse_args(argv)

    xml_path = Path(args.xml_path)
    if not xml_path.exists():
        raise SystemExit(f"File not found: {xml_path}")

    posts = parse_posts(xml_path)
    if args.dry_run:
        for post in posts:
            print(f"{store.to_iso(post['createdAt'])}  [{post['category']}]  {post['title']}")
        print(f"{len(posts)} posts would be imported")
        return

    if not config.MONGODB_URI:
        raise SystemExit("MONGODB_URI is not defined")
    store.init_client(config.MONGODB_URI, config.MONGODB_DB)
    try:
        count = store.import_posts(posts)
    finally:
        store.close_client()
    print(f"Imported {count} of {len(posts)} posts into {config.MONGODB_DB}.{config.POSTS_COLLECTION}")


if __name__ == "__main__":
    main()
