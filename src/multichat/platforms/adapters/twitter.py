"""Twitter/X messenger adapter using the v2 API with OAuth 1.0a user context."""

import logging
from typing import Any, Optional

from pydantic import Field
from tweepy.asynchronous import AsyncClient
from tweepy.errors import TweepyException

from multichat.platforms.exceptions import InvalidArgumentsError
from multichat.platforms.models import PlatformType, TweetResponse
from multichat.platforms.protocol import Messenger
from multichat.tools import Operation, OperationArguments
from multichat.tools.registry import OperationNamespace

logger = logging.getLogger(__name__)

MAX_TWEET_LENGTH = 280


# Operation arguments


class PostTweetArgs(OperationArguments):
    text: str = Field(description="The text content of the tweet (max 280 characters)")
    reply_to_tweet_id: Optional[str] = Field(
        default=None, description="Optional: ID of the tweet to reply to"
    )


class SendMessageArgs(OperationArguments):
    message: str = Field(description="The text content of the tweet (max 280 characters)")
    reply_to_tweet_id: Optional[str] = Field(
        default=None, description="Optional: ID of the tweet to reply to"
    )


class DeleteTweetArgs(OperationArguments):
    tweet_id: str = Field(description="The ID of the tweet to delete")


class TwitterMessenger(Messenger):
    """Twitter/X messenger posting and deleting tweets.

    Configuration:
        - api_key / api_secret: Consumer credentials of the app
        - access_token / access_token_secret: User credentials the tweets are posted as
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        access_token: str,
        access_token_secret: str,
        client: Optional[Any] = None,
    ):
        """Initialize the Twitter messenger.

        Args:
            api_key: API (consumer) key
            api_secret: API (consumer) secret
            access_token: User access token
            access_token_secret: User access token secret
            client: Pre-built API client, mainly for tests

        Raises:
            ValueError: If any credential is missing
        """
        if not all((api_key, api_secret, access_token, access_token_secret)):
            raise ValueError("all Twitter API credentials are required")

        super().__init__()
        self._api_key = api_key
        self._api_secret = api_secret
        self._access_token = access_token
        self._access_token_secret = access_token_secret
        self._injected_client = client
        self._client: Optional[Any] = None

    @property
    def platform_type(self) -> PlatformType:
        """The platform this backend talks to."""
        return PlatformType.TWITTER

    @property
    def display_name(self) -> str:
        """Human-facing platform name."""
        return "Twitter/X"

    async def _open(self) -> None:
        if self._injected_client is not None:
            self._client = self._injected_client
            return

        self._client = AsyncClient(
            consumer_key=self._api_key,
            consumer_secret=self._api_secret,
            access_token=self._access_token,
            access_token_secret=self._access_token_secret,
        )

    async def _close(self) -> None:
        self._client = None

    def register_operations(self, namespace: OperationNamespace) -> None:
        """Register the Twitter/X operations."""
        namespace.register(
            Operation(
                name="post_tweet",
                description="Post a tweet to Twitter/X (max 280 characters)",
                arguments=PostTweetArgs,
                handler=self._handle_post_tweet,
            )
        )
        namespace.register(
            Operation(
                name="send_message",
                description="Send a message (tweet) to Twitter/X (max 280 characters)",
                arguments=SendMessageArgs,
                handler=self._handle_send_message,
            )
        )
        namespace.register(
            Operation(
                name="delete_tweet",
                description="Delete a tweet by ID",
                arguments=DeleteTweetArgs,
                handler=self._handle_delete_tweet,
            )
        )

    async def post_tweet(self, text: str, reply_to_tweet_id: Optional[str] = None) -> TweetResponse:
        """Post a tweet, optionally as a reply.

        Length is counted in Unicode code points and checked before any
        network call.

        Raises:
            NotConnectedError: If not connected
            InvalidArgumentsError: If the text is empty or too long
            PlatformError: If the API rejects the tweet
        """
        self._ensure_connected()
        if not text:
            raise InvalidArgumentsError("tweet text cannot be empty")
        if len(text) > MAX_TWEET_LENGTH:
            raise InvalidArgumentsError(
                f"tweet text exceeds {MAX_TWEET_LENGTH} characters ({len(text)})"
            )

        try:
            response = await self._client.create_tweet(
                text=text,
                in_reply_to_tweet_id=reply_to_tweet_id or None,
                user_auth=True,
            )
        except TweepyException as e:
            error = self._platform_error("post tweet", e)
            error.details = TweetResponse(text=text, success=False, error=str(e))
            raise error from e

        data = response.data or {}
        tweet_id = str(data.get("id", ""))
        logger.info(f"Tweet posted successfully: {tweet_id}")
        return TweetResponse(tweet_id=tweet_id, text=data.get("text", text), success=True)

    async def delete_tweet(self, tweet_id: str) -> dict[str, Any]:
        """Delete one of the user's tweets."""
        self._ensure_connected()
        if not tweet_id:
            raise InvalidArgumentsError("tweet ID cannot be empty")

        try:
            await self._client.delete_tweet(tweet_id, user_auth=True)
        except TweepyException as e:
            raise self._platform_error("delete tweet", e) from e

        logger.info(f"Tweet deleted successfully: {tweet_id}")
        return {"success": True, "tweet_id": tweet_id, "message": "Tweet deleted successfully"}

    # Handlers

    async def _handle_post_tweet(self, args: PostTweetArgs) -> TweetResponse:
        return await self.post_tweet(args.text, args.reply_to_tweet_id)

    async def _handle_send_message(self, args: SendMessageArgs) -> TweetResponse:
        return await self.post_tweet(args.message, args.reply_to_tweet_id)

    async def _handle_delete_tweet(self, args: DeleteTweetArgs) -> dict[str, Any]:
        return await self.delete_tweet(args.tweet_id)
