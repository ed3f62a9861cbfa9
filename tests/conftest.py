"""Shared fixtures: stubbed HTTP responses and sessions.

No test touches the network; every stage gets a ``Mock`` session whose
``get`` is routed by URL prefix.
"""

import json
from unittest.mock import Mock

import pytest
import requests


def _make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = json.dumps(json_data) if json_data is not None else text
    response.json.side_effect = lambda: json.loads(response.text)
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Error"
        )
    return response


def _route_session(routes):
    """Session whose ``get`` answers from ``routes`` (URL prefix -> response).

    A route may map to an exception instance, which is raised instead.
    """

    def get(url, **kwargs):
        for prefix, answer in routes.items():
            if url.startswith(prefix):
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise requests.ConnectionError(f"no route for {url}")

    session = Mock()
    session.get.side_effect = get
    return session


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def route_session():
    return _route_session


@pytest.fixture
def handler_session():
    """Session whose ``get`` delegates to ``handler(url, params)``."""

    def build(handler):
        session = Mock()
        session.get.side_effect = lambda url, params=None, **kwargs: handler(url, params)
        return session

    return build
