# tickets.py
"""Ticket identifier extraction from commit messages."""

from __future__ import annotations

import re
from typing import Iterable

from models import Commit, HostLogger
from settings import PluginConfig


def build_ticket_patterns(config: PluginConfig) -> list[re.Pattern[str]]:
    """Compile the patterns used to find tickets.

    ``ticket_regex`` takes precedence over ``ticket_prefixes`` whenever it is set.
    An invalid ``ticket_regex`` raises ``re.error``.
    """

    if config.ticket_regex is not None:
        return [re.compile(config.ticket_regex, re.IGNORECASE)]

    # Word boundaries and digits are ASCII only, so "修复ABC-5" still yields ABC-5.
    return [
        re.compile(
            rf"(?<![0-9A-Za-z_]){re.escape(prefix)}-([0-9]+)(?![0-9A-Za-z_])", re.IGNORECASE
        )
        for prefix in config.ticket_prefixes or []
    ]


def get_tickets(
    config: PluginConfig, commits: Iterable[Commit], logger: HostLogger
) -> list[str]:
    """Return the unique ticket identifiers found in ``commits`` in first-seen order.

    Identifiers are kept as matched, so ``ABC-1`` and ``abc-1`` are distinct.
    """

    patterns = build_ticket_patterns(config)
    tickets: dict[str, None] = {}
    for commit in commits:
        for pattern in patterns:
            for match in pattern.finditer(commit.message):
                ticket = match.group(0)
                tickets.setdefault(ticket, None)
                logger.info(f"Found ticket {ticket} in commit: {commit.short_hash}")

    return list(tickets)
