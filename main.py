#!/usr/bin/env python3
"""
site-crawler entry point

    python main.py --url https://example.com --depth 2 --limit 50 --output out/
"""
from site_crawler.main import run

if __name__ == "__main__":
    run()
