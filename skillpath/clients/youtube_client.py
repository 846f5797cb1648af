"""
YouTube Data API v3 client for chapter video recommendations.
Search results are enriched with duration and view count from the videos endpoint.
"""

import re
import html
import logging
from typing import Any, Dict, List, Optional

import httpx

from skillpath.models.learning_models import Video
from skillpath.utils.exceptions import SearchServiceError

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
WATCH_URL = "https://www.youtube.com/watch?v="
DESCRIPTION_LIMIT = 200

_ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def format_duration(iso_duration: str) -> str:
    """'PT1H2M10S' -> '1:02:10', 'PT4M5S' -> '4:05'."""
    match = _ISO_DURATION.match(iso_duration or "")
    if not match:
        return ""

    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_view_count(count: Any) -> str:
    """'1234567' -> '1.2M views'"""
    try:
        num = int(count)
    except (TypeError, ValueError):
        return ""

    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M views"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K views"
    return f"{num} views"


def _items(payload: Any) -> List[Dict[str, Any]]:
    """The object entries of a list response; a non-object body is a ValueError."""
    if not isinstance(payload, dict):
        raise ValueError(f"unexpected response body: {type(payload).__name__}")
    items = payload.get("items") or []
    if not isinstance(items, list):
        raise ValueError("'items' is not a list")
    return [item for item in items if isinstance(item, dict)]


class YouTubeSearchClient:
    """
    Video search backed by the YouTube Data API.

    search() raises SearchServiceError for a missing API key, transport errors
    and non-2xx search responses. The details lookup is best-effort.
    """

    def __init__(
        self,
        api_key: Optional[str],
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def search(self, query: str, max_results: int = 5) -> List[Video]:
        if not self.api_key:
            raise SearchServiceError("YOUTUBE_API_KEY is not configured",
                                     context={"query": query})

        params = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": str(max_results),
            "order": "relevance",
            "videoDuration": "medium",
            "videoEmbeddable": "true",
            "safeSearch": "strict",
            "relevanceLanguage": "en",
            "key": self.api_key,
        }

        try:
            response = await self._http.get(f"{YOUTUBE_API_BASE}/search", params=params)
            response.raise_for_status()
            items = _items(response.json())
        except httpx.HTTPStatusError as e:
            logger.error(f"YouTube search HTTP {e.response.status_code} for '{query}'")
            raise SearchServiceError(f"YouTube API error: {e.response.status_code}",
                                     context={"query": query})
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"YouTube search failed for '{query}': {e}")
            raise SearchServiceError(f"YouTube search failed: {e}", context={"query": query})

        items = [item for item in items if isinstance(item.get("id"), dict) and item["id"].get("videoId")]
        if not items:
            return []

        details = await self._fetch_details([item["id"]["videoId"] for item in items])
        return [self._to_video(item, details.get(item["id"]["videoId"], {})) for item in items]

    async def _fetch_details(self, video_ids: List[str]) -> Dict[str, Dict[str, str]]:
        params = {
            "part": "contentDetails,statistics",
            "id": ",".join(video_ids),
            "key": self.api_key,
        }
        try:
            response = await self._http.get(f"{YOUTUBE_API_BASE}/videos", params=params)
            response.raise_for_status()
            items = _items(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"YouTube details lookup failed, continuing without it: {e}")
            return {}

        details = {}
        for item in items:
            details[item.get("id")] = {
                "duration": format_duration((item.get("contentDetails") or {}).get("duration", "")),
                "view_count": format_view_count((item.get("statistics") or {}).get("viewCount")),
            }
        return details

    @staticmethod
    def _to_video(item: Dict[str, Any], details: Dict[str, str]) -> Video:
        video_id = item["id"]["videoId"]
        snippet = item.get("snippet") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumbnail = thumbnails.get("medium") or thumbnails.get("default") or {}

        return Video(
            video_id=video_id,
            title=html.unescape(snippet.get("title", "")),
            url=f"{WATCH_URL}{video_id}",
            thumbnail_url=thumbnail.get("url", ""),
            channel_name=snippet.get("channelTitle", ""),
            description=html.unescape(snippet.get("description", ""))[:DESCRIPTION_LIMIT],
            published_at=snippet.get("publishedAt"),
            duration=details.get("duration") or None,
            view_count=details.get("view_count") or None,
        )
