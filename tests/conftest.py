"""Shared pytest fixtures for the analytics tests."""

from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from app import create_app
from config import ScoreCalibration, Settings
from db import DbStatus

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class FakeCursor(list):
    """List standing in for a pymongo cursor."""

    def sort(self, *args: Any, **kwargs: Any) -> "FakeCursor":
        return self


class FakeCollection:
    """Collection double that records queries and returns canned results.

    Aggregation results are registered with `when(predicate, result)`; the
    first predicate that accepts the pipeline wins, anything else gets [].
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.pipelines: list[list[dict]] = []
        self.distinct_calls: list[tuple[str, dict]] = []
        self.find_calls: list[tuple[dict, dict | None]] = []
        self.distinct_result: list[Any] = []
        self.find_result: list[dict] = []
        self.error: Exception | None = None
        self._responses: list[tuple[Callable[[list[dict]], bool], list[dict]]] = []

    def when(self, predicate: Callable[[list[dict]], bool], result: list[dict]) -> None:
        self._responses.append((predicate, result))

    def aggregate(self, pipeline: list[dict]) -> list[dict]:
        if self.error is not None:
            raise self.error
        self.pipelines.append(pipeline)
        for predicate, result in self._responses:
            if predicate(pipeline):
                return list(result)
        return []

    def distinct(self, key: str, query: dict) -> list[Any]:
        if self.error is not None:
            raise self.error
        self.distinct_calls.append((key, query))
        return list(self.distinct_result)

    def find(self, query: dict, projection: dict | None = None) -> FakeCursor:
        if self.error is not None:
            raise self.error
        self.find_calls.append((query, projection))
        return FakeCursor(self.find_result)


class FakeStore:
    """In-memory stand-in for MarketplaceStore."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.collections = {
            name: FakeCollection(name) for name in ("orders", "products", "users", "vendors")
        }

    def collection(self, name: str) -> FakeCollection | None:
        if not self.enabled:
            return None
        return self.collections[name]

    def status(self) -> DbStatus:
        return DbStatus(enabled=self.enabled, ok=True, message="fake store")

    def ensure_indexes(self) -> None:
        pass

    def close(self) -> None:
        pass


def has_facet(name: str) -> Callable[[list[dict]], bool]:
    """Predicate: pipeline is a single $facet stage with the named branch."""

    def predicate(pipeline: list[dict]) -> bool:
        return len(pipeline) == 1 and name in pipeline[0].get("$facet", {})

    return predicate


def groups_by(key: Any) -> Callable[[list[dict]], bool]:
    """Predicate: pipeline contains a $group stage on the given _id."""

    def predicate(pipeline: list[dict]) -> bool:
        return any(stage.get("$group", {}).get("_id") == key for stage in pipeline)

    return predicate


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "mongodb_uri": None,
        "mongodb_db": "marketplace_test",
        "create_indexes": False,
        "host": "127.0.0.1",
        "port": 5000,
        "debug": False,
        "cors_origins": "*",
        "parallel_facets": False,
        "profit_cost_ratio": 0.6,
        "score": ScoreCalibration(),
        "top_selling_limit": 10,
        "top_products_limit": 20,
        "top_customers_limit": 20,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def app(settings: Settings, store: FakeStore):
    """Flask app wired to the fake store and a fixed clock."""
    flask_app = create_app(settings, store=store, clock=lambda: NOW)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
