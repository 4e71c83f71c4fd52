"""
Reddit post-listing client using prawcore.

Every listing call acquires a fresh read-only OAuth2 authorization
(client_credentials grant) through the injected TokenGate, then fetches
one bounded page of raw post records for a channel.
"""

import asyncio
import os
from typing import Any, Dict, List, Optional

import prawcore
import structlog
from prawcore.exceptions import (
    InvalidToken,
    OAuthException,
    PrawcoreException,
    RequestException,
    ResponseException,
)

from mediafeed.exceptions import FetchError, UpstreamAuthError
from mediafeed.token_gate import TokenGate

logger = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = "MediaFeed-MCP/1.0 (by /u/mediafeed)"

# Reddit caps listing pages at 100 posts
PAGE_SIZE_CAP = 100

VALID_SORTS = ("hot", "new", "top", "rising", "controversial")


def listing_path(channel: str, sort: str = "new") -> str:
    """
    Build the listing path for a channel.

    Channels are subreddit names unless they carry an explicit
    ``user/`` prefix.

    Example:
        >>> listing_path("pics")
        '/r/pics/new'
        >>> listing_path("user/spez", "hot")
        '/user/spez/hot'
    """
    prefix = channel if channel.startswith("user/") else f"r/{channel}"
    return f"/{prefix}/{sort}"


class RedditPostClient:
    """
    Post-listing client for the Reddit OAuth API.

    Attributes:
        gate: Shared TokenGate pacing token issuance
        page_size: Posts requested per listing (capped at 100)

    Example:
        >>> client = RedditPostClient(TokenGate())
        >>> posts = await client.list_posts("EarthPorn")
        >>> print(posts[0]["title"])
    """

    def __init__(
        self,
        gate: TokenGate,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        user_agent: Optional[str] = None,
        page_size: int = PAGE_SIZE_CAP,
        requestor: Optional[prawcore.Requestor] = None,
    ) -> None:
        """
        Initialize the client with credentials.

        Credentials default to REDDIT_CLIENT_ID, REDDIT_CLIENT_SECRET and
        REDDIT_USER_AGENT environment variables.

        Raises:
            UpstreamAuthError: If client id or secret is missing
        """
        client_id = client_id or os.getenv("REDDIT_CLIENT_ID")
        client_secret = client_secret or os.getenv("REDDIT_CLIENT_SECRET")
        user_agent = user_agent or os.getenv("REDDIT_USER_AGENT", DEFAULT_USER_AGENT)

        if not client_id:
            logger.error("reddit_credentials_missing", field="REDDIT_CLIENT_ID")
            raise UpstreamAuthError("REDDIT_CLIENT_ID is required")

        if not client_secret:
            logger.error("reddit_credentials_missing", field="REDDIT_CLIENT_SECRET")
            raise UpstreamAuthError("REDDIT_CLIENT_SECRET is required")

        self.gate = gate
        self.page_size = max(1, min(PAGE_SIZE_CAP, page_size))
        self.requestor = requestor or prawcore.Requestor(user_agent, timeout=30)
        self.authenticator = prawcore.TrustedAuthenticator(
            self.requestor, client_id, client_secret
        )

        logger.info(
            "reddit_client_initialized",
            user_agent=user_agent,
            client_id=f"{client_id[:8]}...",
            page_size=self.page_size,
        )

    async def issue_authorizer(self) -> prawcore.ReadOnlyAuthorizer:
        """
        Run the client_credentials exchange.

        Only called through the TokenGate.

        Returns:
            A freshly refreshed read-only authorizer

        Raises:
            UpstreamAuthError: If Reddit rejects the credentials or is unreachable
        """
        authorizer = prawcore.ReadOnlyAuthorizer(self.authenticator)

        try:
            await asyncio.to_thread(authorizer.refresh)
        except (OAuthException, InvalidToken, ResponseException) as e:
            raise UpstreamAuthError(f"Reddit token exchange rejected: {e}") from e
        except RequestException as e:
            raise UpstreamAuthError(f"Reddit token endpoint unreachable: {e}") from e

        return authorizer

    async def list_posts(
        self,
        channel: str,
        sort: str = "new",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch one page of raw posts for a channel.

        Args:
            channel: Subreddit name or ``user/<name>``
            sort: Listing sort (default: "new")
            limit: Page size, clamped to [1, 100] (default: client page_size)

        Returns:
            List of raw post dictionaries (the ``data`` of each t3 child)

        Raises:
            UpstreamAuthError: If no token could be issued
            FetchError: On any non-2xx response or transport failure
        """
        if sort not in VALID_SORTS:
            raise FetchError(channel, cause=f"invalid sort '{sort}'", status_code=422)

        page_size = self.page_size if limit is None else max(1, min(PAGE_SIZE_CAP, limit))
        authorizer = await self.gate.acquire_token(self.issue_authorizer)
        session = prawcore.Session(authorizer)
        path = listing_path(channel, sort)

        try:
            payload = await asyncio.to_thread(
                session.request,
                "GET",
                path,
                params={"limit": page_size, "raw_json": 1},
            )
        except InvalidToken as e:
            raise UpstreamAuthError(f"Reddit token rejected for {path}: {e}") from e
        except ResponseException as e:
            raise FetchError(channel, cause=e, status_code=e.response.status_code) from e
        except PrawcoreException as e:
            raise FetchError(channel, cause=e) from e

        children = (payload or {}).get("data", {}).get("children")
        if children is None:
            raise FetchError(channel, cause="listing contained no posts")

        posts = [child.get("data", {}) for child in children if isinstance(child, dict)]

        logger.debug(
            "reddit_listing_fetched",
            channel=channel,
            sort=sort,
            posts_count=len(posts),
        )

        return posts
