"""
Shared pytest fixtures.

FakeFirestore is an in-memory stand-in for the Firestore client covering what
the services use: document/collection references by slash path, ordered and
paginated queries, transactions, batches and on_snapshot listeners (notified
synchronously after every write).
"""

import copy
import functools
import random
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from google.api_core.exceptions import NotFound

TEST_UID = "user-1"


class FakeDocumentSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self._data = copy.deepcopy(data) if data is not None else None

    @property
    def id(self):
        return self.reference.id

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field):
        return self._data[field]


class FakeWatch:
    def __init__(self, db, reference, callback):
        self._db = db
        self.reference = reference
        self.callback = callback
        self.active = True

    def unsubscribe(self):
        self.active = False
        if self in self._db.watches:
            self._db.watches.remove(self)


class FakeDocumentReference:
    def __init__(self, db, path):
        self._db = db
        self.path = path

    @property
    def id(self):
        return self.path.rsplit('/', 1)[-1]

    @property
    def parent(self):
        return FakeCollectionReference(self._db, self.path.rsplit('/', 1)[0])

    def collection(self, name):
        return FakeCollectionReference(self._db, f"{self.path}/{name}")

    def get(self, transaction=None):
        data = self._db.docs.get(self.path)
        if transaction is not None:
            transaction.record_read(self.path, data)
        return FakeDocumentSnapshot(self, data)

    def set(self, data, merge=False):
        self._db.apply_set(self.path, data, merge)

    def update(self, data):
        self._db.apply_update(self.path, data)

    def delete(self):
        self._db.apply_delete(self.path)

    def on_snapshot(self, callback):
        return self._db.listen(self, callback)

    def __eq__(self, other):
        return isinstance(other, FakeDocumentReference) and other.path == self.path

    def __hash__(self):
        return hash(self.path)


class FakeQuery:
    def __init__(self, db, path, order=None, limit_to=None, cursor=None):
        self._db = db
        self.path = path
        self._order = order
        self._limit = limit_to
        self._cursor = cursor

    def _copy(self, **changes):
        state = dict(order=self._order, limit_to=self._limit, cursor=self._cursor)
        state.update(changes)
        return FakeQuery(self._db, self.path, **state)

    def order_by(self, field, direction="ASCENDING"):
        return self._copy(order=(field, direction))

    def limit(self, count):
        return self._copy(limit_to=count)

    def start_after(self, snapshot):
        return self._copy(cursor=snapshot.id)

    def _children(self):
        prefix = self.path + '/'
        return [
            (path, data) for path, data in self._db.docs.items()
            if path.startswith(prefix) and '/' not in path[len(prefix):]
        ]

    def stream(self, transaction=None):
        children = self._children()
        if self._order:
            field, direction = self._order
            children = [(p, d) for p, d in children if field in d]
            children.sort(key=lambda item: (item[1][field], item[0].rsplit('/', 1)[-1]),
                          reverse=(direction == "DESCENDING"))
        else:
            children.sort(key=lambda item: item[0])

        if self._cursor is not None:
            ids = [p.rsplit('/', 1)[-1] for p, _ in children]
            if self._cursor in ids:
                children = children[ids.index(self._cursor) + 1:]

        if self._limit is not None:
            children = children[:self._limit]

        for path, data in children:
            yield FakeDocumentSnapshot(FakeDocumentReference(self._db, path), data)

    def get(self, transaction=None):
        return list(self.stream())


class FakeCollectionReference(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, path)

    @property
    def id(self):
        return self.path.rsplit('/', 1)[-1]

    def document(self, document_id=None):
        return FakeDocumentReference(self._db, f"{self.path}/{document_id or uuid.uuid4().hex[:20]}")

    def list_documents(self):
        """Direct child documents, including ones that only exist through subcollections."""
        prefix = self.path + '/'
        ids = []
        for path in self._db.docs:
            if path.startswith(prefix):
                doc_id = path[len(prefix):].split('/', 1)[0]
                if doc_id not in ids:
                    ids.append(doc_id)
        return [self.document(doc_id) for doc_id in sorted(ids)]

    def on_snapshot(self, callback):
        return self._db.listen(self, callback)


class FakeWriteBatch:
    def __init__(self, db):
        self._db = db
        self._writes = []

    def set(self, reference, data, merge=False):
        self._writes.append(('set', reference, data, merge))

    def update(self, reference, data):
        self._writes.append(('update', reference, data, None))

    def delete(self, reference):
        self._writes.append(('delete', reference, None, None))

    def commit(self):
        for op, reference, data, merge in self._writes:
            if op == 'set':
                self._db.apply_set(reference.path, data, merge)
            elif op == 'update':
                self._db.apply_update(reference.path, data)
            else:
                self._db.apply_delete(reference.path)
        self._db.commits += 1
        self._writes = []


class FakeTransaction(FakeWriteBatch):
    """
    Writes are buffered and only applied by commit(), which the fake
    transactional decorator calls. Documents read through the transaction are
    remembered so a concurrent change to them can be detected before commit.
    """

    def __init__(self, db):
        super().__init__(db)
        self._reads = {}

    def record_read(self, path, data):
        self._reads.setdefault(path, copy.deepcopy(data))

    def has_conflict(self):
        return any(self._db.docs.get(path) != data for path, data in self._reads.items())

    def reset(self):
        self._reads = {}
        self._writes = []


class FakeFirestore:
    def __init__(self):
        self.docs = {}
        self.watches = []
        self.commits = 0
        # One-shot callable run between a transaction's reads and its commit.
        self.before_commit = None

    # --- client API ---

    def collection(self, path):
        return FakeCollectionReference(self, path)

    def document(self, path):
        return FakeDocumentReference(self, path)

    def transaction(self):
        return FakeTransaction(self)

    def batch(self):
        return FakeWriteBatch(self)

    # --- storage ---

    def apply_set(self, path, data, merge):
        if merge and path in self.docs:
            merged = dict(self.docs[path])
            merged.update(copy.deepcopy(data))
            self.docs[path] = merged
        else:
            self.docs[path] = copy.deepcopy(data)
        self._changed(path)

    def apply_update(self, path, data):
        if path not in self.docs:
            raise NotFound(f"No document to update: {path}")
        self.apply_set(path, data, merge=True)

    def apply_delete(self, path):
        if self.docs.pop(path, None) is not None:
            self._changed(path)

    # --- listeners ---

    def listen(self, reference, callback):
        watch = FakeWatch(self, reference, callback)
        self.watches.append(watch)
        self._deliver(watch)
        return watch

    def _deliver(self, watch):
        reference = watch.reference
        if isinstance(reference, FakeDocumentReference):
            docs = [reference.get()]
        else:
            docs = reference.get()
        watch.callback(docs, [], datetime.now(timezone.utc))

    def _changed(self, path):
        parent = path.rsplit('/', 1)[0]
        for watch in list(self.watches):
            if watch.active and watch.reference.path in (path, parent):
                self._deliver(watch)

    # --- test helpers ---

    def data(self, path):
        return copy.deepcopy(self.docs.get(path))


def fake_transactional(to_wrap, max_attempts=5):
    """
    Replacement for firestore.transactional. Runs the function, then commits
    the buffered writes unless a document it read has changed meanwhile, in
    which case the writes are dropped and the function runs again.
    """
    @functools.wraps(to_wrap)
    def wrapper(transaction, *args, **kwargs):
        for _ in range(max_attempts):
            transaction.reset()
            result = to_wrap(transaction, *args, **kwargs)
            hook, transaction._db.before_commit = transaction._db.before_commit, None
            if hook is not None:
                hook()
            if not transaction.has_conflict():
                transaction.commit()
                return result
        raise ValueError(f"Failed to commit transaction in {max_attempts} attempts.")
    return wrapper


def seed_bunny(db, uid=TEST_UID, bunny_id="bunny-1", name="Clover", color="cream",
               event_count=0, created_at=None):
    db.docs[f"users/{uid}/bunnies/{bunny_id}"] = {
        "name": name,
        "colorClass": color,
        "eventCount": event_count,
        "createdAt": created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    return bunny_id


def seed_events(db, uid=TEST_UID, bunny_id="bunny-1", count=1, carrots=1, start=None):
    """Events with strictly increasing createdAt; returns their ids, oldest first."""
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    ids = []
    for i in range(count):
        event_id = f"event-{i:05d}"
        db.docs[f"users/{uid}/bunnies/{bunny_id}/events/{event_id}"] = {
            "type": "CARROT_GIVEN",
            "carrots": carrots,
            "createdAt": start + timedelta(minutes=i),
            "source": "ui",
        }
        ids.append(event_id)
    return ids


@pytest.fixture(autouse=True)
def _fake_transactions(monkeypatch):
    from firebase_admin import firestore
    monkeypatch.setattr(firestore, "transactional", fake_transactional)


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def config_service(db):
    from uvbunny.api.config.services import ConfigService
    return ConfigService(db=db)


@pytest.fixture
def bunny_service(db, config_service):
    from uvbunny.api.bunnies.services import BunnyService
    return BunnyService(config_service=config_service, db=db, rng=random.Random(7))


@pytest.fixture
def app(db):
    from uvbunny import create_app
    return create_app('testing', db=db)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    from flask_jwt_extended import create_access_token
    with app.app_context():
        token = create_access_token(identity=TEST_UID)
    return {"Authorization": f"Bearer {token}"}
