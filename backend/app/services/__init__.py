"""
Services module for the Open Graph parser backend.

This package contains the business logic behind the parse endpoint:

- html_fetcher: HTTP GET of the target page with user agent and timeout
- opengraph_extractor: Open Graph ``<meta property>`` extraction
- meta_tag_extractor: ``<title>`` / description fallback extraction
- video_enricher_service: magnet link, inline source and video API lookup
- metadata_service: cache-first orchestration returning a parse outcome
- errors: exception hierarchy raised by the stages above

Blocking HTTP calls made with ``requests`` are run in worker threads so the
services can be awaited from FastAPI handlers.
"""
