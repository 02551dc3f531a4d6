"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from paramind.documents import InMemoryDocumentHost

NOVEL_MARKDOWN = """
# Chapter 1

Alice walked into the quiet library before dawn. She remembered the old map her grandmother left behind.

Bob said the map was a forgery, but Alice decided to trust it anyway.

# Chapter 2

Years later the library burned. Nobody could explain the fire or the missing map.

Alice thought about the timeline of events and wondered who had taken it.

# Glossary

Cartography: the definition of map making as a technical craft.
"""


@pytest.fixture
def novel_host() -> InMemoryDocumentHost:
    return InMemoryDocumentHost.from_markdown(NOVEL_MARKDOWN)


@pytest.fixture
def plain_host() -> InMemoryDocumentHost:
    return InMemoryDocumentHost(["First paragraph.", "Second paragraph.", "Third paragraph."])
