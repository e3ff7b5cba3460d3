"""Shared fakes for the wizard tests."""

from __future__ import annotations

import asyncio

import pytest


class FakePlaces:
    """
    In-memory place resolver.

    `results` maps country → city list, `errors` maps country → exception.
    A country listed in `gates` blocks inside resolve() until its event is set.
    """

    def __init__(self, results=None, errors=None):
        self.results = dict(results or {})
        self.errors = dict(errors or {})
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []

    def gate(self, country: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[country] = event
        return event

    async def resolve(self, country: str) -> list[str]:
        self.calls.append(country)
        if country in self.gates:
            await self.gates[country].wait()
        if country in self.errors:
            raise self.errors[country]
        return list(self.results.get(country, []))


class FakeReports:
    def __init__(self, chunks=("## Executive Summary\n", "Body.")):
        self.chunks = list(chunks)
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        for chunk in self.chunks:
            yield chunk


@pytest.fixture
def places():
    return FakePlaces(results={
        "Philippines": ["Cebu City", "Davao City", "Iloilo City"],
        "Vietnam": ["Da Nang", "Hai Phong", "Can Tho"],
        "Thailand": ["Chiang Mai", "Khon Kaen"],
        "Japan": ["Fukuoka", "Sendai"],
        "Kenya": [],
    })


@pytest.fixture
def reports():
    return FakeReports()
