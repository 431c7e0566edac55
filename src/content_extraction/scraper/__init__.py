"""Page acquisition and parsing building blocks.

Sub-modules:
- ``config``          constants: selectors, caps, browser flags
- ``renderer``        renderer/page interface and the Playwright implementation
- ``pool``            bounded, lazily-launched renderer pool
- ``http_fetcher``    async httpx page fetcher for the non-browser tiers
- ``html_metadata``   BeautifulSoup metadata and body-text extraction
- ``image_selector``  lead-image candidate collection and ranking
- ``image_enhancer``  Pillow-based lead-image re-encoding and screenshots
"""
