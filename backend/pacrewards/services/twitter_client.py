"""Twitter API v2 client: profile lookup and campaign retweet search."""

import json
import urllib.error
import urllib.parse
import urllib.request
from datetime import UTC, datetime

import structlog

from config import TwitterSettings, get_settings
from pacrewards.services.errors import SocialClientError
from pacrewards.services.schemas.network import TweetInfo, TwitterUser

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _parse_time(raw: object) -> datetime:
    if not isinstance(raw, str):
        raise ValueError(f"invalid timestamp: {raw!r}")
    parsed: datetime = datetime.fromisoformat(raw)
    # Offset-less timestamps are UTC.
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _error_detail(data: dict[str, object]) -> str | None:
    errors: object = data.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        detail: object = errors[0].get("detail") or errors[0].get("title")
        return str(detail) if detail else None
    return None


class TwitterClient:
    """Bearer-token client for the endpoints the booster program needs."""

    def __init__(self, settings: TwitterSettings | None = None) -> None:
        settings = settings or get_settings().twitter
        self.api_url: str = settings.api_url.rstrip("/")
        self.bearer_token: str = settings.bearer_token
        self.campaign_tweet_id: str = settings.campaign_tweet_id
        self.timeout: int = settings.timeout

    def _get(self, path: str, params: dict[str, str]) -> dict[str, object]:
        url: str = f"{self.api_url}{path}?{urllib.parse.urlencode(params)}"
        req = urllib.request.Request(url)
        req.add_header("Authorization", f"Bearer {self.bearer_token}")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                data: object = json.loads(resp.read().decode())
        except urllib.error.HTTPError as e:
            raise SocialClientError(f"Twitter API returned HTTP {e.code}") from e
        except (urllib.error.URLError, TimeoutError, ValueError) as e:
            raise SocialClientError(f"Twitter API request failed: {e}") from e
        if not isinstance(data, dict):
            raise SocialClientError("unexpected Twitter API response")
        return data

    def user_info(self, handle: str) -> TwitterUser:
        data = self._get(
            f"/users/by/username/{urllib.parse.quote(handle)}",
            {"user.fields": "created_at,public_metrics,verified"},
        )
        user: object = data.get("data")
        if not isinstance(user, dict):
            raise SocialClientError(_error_detail(data) or f"Twitter account @{handle} not found")
        metrics: object = user.get("public_metrics") or {}
        try:
            return TwitterUser(
                account_id=str(user["id"]),
                display_name=str(user.get("username") or handle),
                created_at=_parse_time(user.get("created_at")),
                followers=int(metrics.get("followers_count", 0)) if isinstance(metrics, dict) else 0,
                verified=bool(user.get("verified", False)),
            )
        except (KeyError, ValueError) as e:
            raise SocialClientError(f"malformed profile for @{handle}: {e}") from e

    def retweet_search(self, requester_id: str, handle: str) -> TweetInfo:
        """Latest quote of the campaign post by ``handle`` that mentions the requester id."""
        data = self._get(
            "/tweets/search/recent",
            {
                "query": f'from:{handle} "{requester_id}" is:quote',
                "tweet.fields": "created_at,referenced_tweets",
                "max_results": "10",
            },
        )
        tweets: object = data.get("data") or []
        if not isinstance(tweets, list):
            tweets = []
        for tweet in tweets:
            if not isinstance(tweet, dict) or not self._quotes_campaign(tweet):
                continue
            try:
                return TweetInfo(
                    tweet_id=str(tweet["id"]),
                    created_at=_parse_time(tweet.get("created_at")),
                )
            except (KeyError, ValueError) as e:
                logger.warning("Skipping malformed tweet", error=str(e)[:100])
        raise SocialClientError(f"no retweet of the campaign post found for @{handle}")

    def _quotes_campaign(self, tweet: dict[str, object]) -> bool:
        if not self.campaign_tweet_id:
            return True
        refs: object = tweet.get("referenced_tweets") or []
        if not isinstance(refs, list):
            return False
        return any(
            isinstance(r, dict)
            and r.get("type") == "quoted"
            and str(r.get("id")) == self.campaign_tweet_id
            for r in refs
        )
