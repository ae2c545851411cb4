from __future__ import annotations

import pytest


@pytest.fixture
def fake_urlopen(monkeypatch):
    """Patch urlopen with a recorder; returns the list of captured calls."""

    calls: list[dict] = []

    def _install(response=None, *, error: BaseException | None = None):
        def _urlopen(req, timeout=None):
            calls.append({"url": req.full_url, "method": req.get_method(), "timeout": timeout})
            if error is not None:
                raise error
            return response

        monkeypatch.setattr("hourlyavg.sources.transports.urlopen", _urlopen)
        return calls

    return _install
