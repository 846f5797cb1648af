import unittest

import httpx

from skillpath.clients.youtube_client import (
    YouTubeSearchClient, format_duration, format_view_count
)
from skillpath.utils.exceptions import SearchServiceError

SEARCH_PAYLOAD = {
    "items": [
        {
            "id": {"kind": "youtube#video", "videoId": "abc123"},
            "snippet": {
                "title": "React Hooks &amp; State",
                "description": "Learn &quot;hooks&quot; " + "x" * 300,
                "channelTitle": "Dev Channel",
                "publishedAt": "2024-01-01T00:00:00Z",
                "thumbnails": {"default": {"url": "https://i.ytimg.com/d.jpg"},
                               "medium": {"url": "https://i.ytimg.com/m.jpg"}},
            },
        },
        {
            "id": {"kind": "youtube#video", "videoId": "def456"},
            "snippet": {"title": "Second", "description": "", "channelTitle": "Other",
                        "thumbnails": {"default": {"url": "https://i.ytimg.com/d2.jpg"}}},
        },
    ]
}

DETAILS_PAYLOAD = {
    "items": [
        {"id": "abc123", "contentDetails": {"duration": "PT12M5S"}, "statistics": {"viewCount": "1234567"}},
    ]
}


def client_for(handler, api_key="test-key"):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return YouTubeSearchClient(api_key, http_client=http)


class TestFormatting(unittest.TestCase):

    def test_duration(self):
        self.assertEqual(format_duration("PT1H2M10S"), "1:02:10")
        self.assertEqual(format_duration("PT4M5S"), "4:05")
        self.assertEqual(format_duration("PT45S"), "0:45")
        self.assertEqual(format_duration("garbage"), "")

    def test_view_count(self):
        self.assertEqual(format_view_count("1234567"), "1.2M views")
        self.assertEqual(format_view_count("3400"), "3.4K views")
        self.assertEqual(format_view_count("999"), "999 views")
        self.assertEqual(format_view_count(None), "")


class TestYouTubeSearchClient(unittest.IsolatedAsyncioTestCase):

    async def test_search_with_details(self):
        seen = []

        def handler(request):
            seen.append(request)
            if request.url.path.endswith("/search"):
                return httpx.Response(200, json=SEARCH_PAYLOAD)
            return httpx.Response(200, json=DETAILS_PAYLOAD)

        client = client_for(handler)
        videos = await client.search("React Hooks", max_results=5)
        await client.aclose()

        self.assertEqual(seen[0].url.params["q"], "React Hooks")
        self.assertEqual(seen[0].url.params["maxResults"], "5")
        self.assertEqual(seen[1].url.params["id"], "abc123,def456")

        first = videos[0]
        self.assertEqual(first.title, "React Hooks & State")
        self.assertEqual(first.url, "https://www.youtube.com/watch?v=abc123")
        self.assertEqual(first.thumbnail_url, "https://i.ytimg.com/m.jpg")
        self.assertEqual(first.channel_name, "Dev Channel")
        self.assertTrue(first.description.startswith('Learn "hooks"'))
        self.assertEqual(len(first.description), 200)
        self.assertEqual(first.duration, "12:05")
        self.assertEqual(first.view_count, "1.2M views")

        self.assertEqual(videos[1].thumbnail_url, "https://i.ytimg.com/d2.jpg")
        self.assertIsNone(videos[1].duration)

    async def test_details_failure_is_not_fatal(self):
        def handler(request):
            if request.url.path.endswith("/search"):
                return httpx.Response(200, json=SEARCH_PAYLOAD)
            return httpx.Response(500, json={})

        client = client_for(handler)
        videos = await client.search("React")
        self.assertEqual(len(videos), 2)
        self.assertIsNone(videos[0].view_count)

    async def test_search_error_raises(self):
        client = client_for(lambda request: httpx.Response(403, json={"error": "quota"}))
        with self.assertRaises(SearchServiceError):
            await client.search("React")

    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("unreachable")

        with self.assertRaises(SearchServiceError):
            await client_for(handler).search("React")

    async def test_missing_api_key(self):
        calls = []
        client = client_for(lambda request: calls.append(request), api_key=None)
        with self.assertRaises(SearchServiceError):
            await client.search("React")
        self.assertEqual(calls, [])

    async def test_non_object_body_raises(self):
        for body in ([], None, {"items": "nope"}):
            client = client_for(lambda request, body=body: httpx.Response(200, json=body))
            with self.assertRaises(SearchServiceError):
                await client.search("React")

    async def test_malformed_items_skipped(self):
        payload = {"items": ["junk", {"id": "flat"}, SEARCH_PAYLOAD["items"][0]]}

        def handler(request):
            if request.url.path.endswith("/search"):
                return httpx.Response(200, json=payload)
            return httpx.Response(200, json=[])

        videos = await client_for(handler).search("React")
        self.assertEqual([v.video_id for v in videos], ["abc123"])
        self.assertIsNone(videos[0].duration)

    async def test_no_results(self):
        client = client_for(lambda request: httpx.Response(200, json={"items": []}))
        self.assertEqual(await client.search("Obscure"), [])


if __name__ == "__main__":
    unittest.main()
