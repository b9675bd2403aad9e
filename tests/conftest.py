"""
Shared pytest fixtures for the Renovation Scope Bidding Service test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_item: Factory inserting one ScopeItem
    - scope_items: Demo scope items seeded into the DB
    - fake_infer: Scriptable stand-in for the LLM gateway's infer()
"""

import threading

import pytest

from scopebid import create_app
from scopebid.models import db as _db
from scopebid.models.scope import ScopeItem


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


def _make_item(**overrides):
    data = {
        "item_name": "Ceiling Raise",
        "category": "Phase 1 Essential",
        "critical_constraint": "40 ft height limit",
        "permit_type": "Site Permit",
        "regulatory_flags": "Section 311",
        "target_cost": 85000,
        "est_value_add": 180000,
    }
    data.update(overrides)
    item = ScopeItem(**data)
    _db.session.add(item)
    _db.session.commit()
    return item


@pytest.fixture()
def make_item():
    """Factory: insert one ScopeItem (demo defaults, overridable) and return it."""
    return _make_item


@pytest.fixture()
def scope_items():
    """Seed the demo scope and return the items ordered by id."""
    from scopebid.services.seed_service import seed_scope_items
    seed_scope_items()
    return ScopeItem.query.order_by(ScopeItem.id).all()


class FakeInfer:
    """Records prompts; answers per item name, raising or blocking on request.

    ``responses`` maps an item name to a value (returned) or an Exception
    (raised). ``block`` names items whose call waits on ``release``.
    """

    def __init__(self, responses=None, default="Low risk.", block=()):
        self.responses = responses or {}
        self.default = default
        self.block = set(block)
        self.release = threading.Event()
        self.prompts = []
        self._lock = threading.Lock()

    def __call__(self, prompt, max_output_tokens=256):
        with self._lock:
            self.prompts.append(prompt)
        name = ""
        for line in prompt.splitlines():
            if line.startswith("Item: "):
                name = line[len("Item: "):]
        if name in self.block:
            self.release.wait(10)
        answer = self.responses.get(name, self.default)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture()
def fake_infer():
    infer = FakeInfer()
    yield infer
    infer.release.set()


@pytest.fixture()
def fake_gateway(app, fake_infer):
    """Swap the app's LLM gateway for one whose infer() is ``fake_infer``."""

    class _Gateway:
        infer = staticmethod(fake_infer)

    original = app.extensions["llm_gateway"]
    app.extensions["llm_gateway"] = _Gateway()
    yield fake_infer
    app.extensions["llm_gateway"] = original
