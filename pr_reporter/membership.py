"""Resolve which GitHub authors count as team members for a report."""
from __future__ import annotations

import re

from loguru import logger

from pr_reporter.errors import ChannelNotFoundError, PermissionDeniedError, SlackAPIError
from pr_reporter.models import IdentityMapping, Membership
from pr_reporter.payloads import JSONDict, ensure_str
from pr_reporter.slack import ChatService

CONVERSATION_TYPES = ("public_channel", "private_channel")
SLACK_USER_ID_PATTERN = re.compile(r"^[UW][A-Z0-9]{6,}$")


def match_channel(channels: list[JSONDict], channel: str) -> str | None:
    """Return the ID of the channel whose name or ID equals ``channel``."""
    for candidate in channels:
        channel_id = ensure_str(candidate.get("id"), "channel.id")
        if channel in (ensure_str(candidate.get("name"), "channel.name"), channel_id):
            return channel_id
    return None


def find_channel_id(chat: ChatService, channel: str) -> str:
    """Locate a channel across public, private and untyped listings."""
    name = channel.removeprefix("#")
    logger.debug("Looking for Slack channel: {name}", name=name)
    for conversation_type in CONVERSATION_TYPES:
        try:
            channels = chat.list_channels(conversation_type)
        except (SlackAPIError, PermissionDeniedError) as exc:
            logger.debug(
                "Error listing {kind} channels: {error}",
                kind=conversation_type,
                error=str(exc),
            )
            continue
        channel_id = match_channel(channels, name)
        if channel_id:
            logger.debug(
                "Found channel #{name} with ID {id} ({kind})",
                name=name,
                id=channel_id,
                kind=conversation_type,
            )
            return channel_id
    logger.debug("Channel not found in typed search, trying all accessible channels")
    channel_id = match_channel(chat.list_channels(), name)
    if channel_id is None:
        raise ChannelNotFoundError(name)
    return channel_id


def resolve_channel_membership(
    chat: ChatService,
    channel: str,
    identity: IdentityMapping,
) -> Membership:
    """Build the allowed author list from a Slack channel's human members."""
    auth = chat.auth_test()
    logger.debug(
        "Authenticated to Slack as {user} (team {team})",
        user=auth.get("user"),
        team=auth.get("team"),
    )
    channel_id = find_channel_id(chat, channel)
    member_ids = chat.channel_members(channel_id)
    logger.debug("Found {count} members in {channel}", count=len(member_ids), channel=channel)

    allowed_users: list[str] = []
    chat_ids: dict[str, str] = {}
    for member_id in member_ids:
        try:
            user = chat.user_info(member_id)
        except SlackAPIError as exc:
            logger.warning(
                "Skipping Slack member {member}: {error}",
                member=member_id,
                error=str(exc),
            )
            continue
        name = ensure_str(user.get("name"), "user.name")
        if user.get("is_bot") or user.get("deleted"):
            logger.debug(
                "Skipping {name} (bot: {bot}, deleted: {deleted})",
                name=name,
                bot=bool(user.get("is_bot")),
                deleted=bool(user.get("deleted")),
            )
            continue
        if not name:
            continue
        chat_ids[name] = ensure_str(user.get("id"), "user.id", member_id) or member_id
        login = identity.code_host_login(name)
        if login != name:
            logger.debug("Mapped Slack user {name} to GitHub user {login}", name=name, login=login)
        allowed_users.append(login)

    logger.debug("Allowed users: {users}", users=allowed_users)
    return Membership(
        allowed_users=allowed_users,
        chat_ids=chat_ids,
        identity=identity,
        restricted=True,
    )


def resolve_static_membership(
    allowed_users: list[str],
    identity: IdentityMapping,
    *,
    restricted: bool = True,
) -> Membership:
    """Build membership from a configured allow-list without calling Slack.

    Mapping entries whose Slack side is a user ID (``U0123ABC``) double as
    mention targets, so assignees still render as ``<@ID>``.
    """
    chat_ids = {
        chat_name: chat_name
        for chat_name in identity.chat_to_code_host
        if SLACK_USER_ID_PATTERN.match(chat_name)
    }
    return Membership(
        allowed_users=list(allowed_users),
        chat_ids=chat_ids,
        identity=identity,
        restricted=restricted,
    )


def resolve_membership(
    chat: ChatService,
    *,
    source: str,
    channel: str,
    allowed_users: list[str],
    identity: IdentityMapping,
) -> Membership:
    """Resolve membership from the configured source."""
    if source == "channel":
        return resolve_channel_membership(chat, channel, identity)
    if source == "allowlist":
        return resolve_static_membership(allowed_users, identity)
    return resolve_static_membership([], identity, restricted=False)
